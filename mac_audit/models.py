# mac_audit/models.py
# Model-identifier tables (Apple technical specifications).

import fnmatch

TOUCH_BAR_MODELS = {
    "MacBookPro13,2", "MacBookPro13,3",
    "MacBookPro14,2", "MacBookPro14,3",
    "MacBookPro15,1", "MacBookPro15,2", "MacBookPro15,3", "MacBookPro15,4",
    "MacBookPro16,1", "MacBookPro16,2", "MacBookPro16,3", "MacBookPro16,4",
}

BUTTERFLY_KEYBOARD_MODELS = {
    "MacBook8,1", "MacBook9,1", "MacBook10,1",
    "MacBookAir8,1", "MacBookAir8,2",
    "MacBookPro13,1", "MacBookPro13,2", "MacBookPro13,3",
    "MacBookPro14,1", "MacBookPro14,2", "MacBookPro14,3",
    "MacBookPro15,1", "MacBookPro15,2", "MacBookPro15,3", "MacBookPro15,4",
    "MacBookPro16,1", "MacBookPro16,2", "MacBookPro16,3", "MacBookPro16,4",
}

# Butterfly models with a known history of sticky/repeating keys.
BUTTERFLY_PROBLEM_MODELS = BUTTERFLY_KEYBOARD_MODELS - {
    "MacBookPro16,1", "MacBookPro16,2", "MacBookPro16,3", "MacBookPro16,4",
}

SCISSOR_KEYBOARD_PATTERNS = (
    "MacBookAir9,1", "MacBookAir10,1", "MacBookPro17,1", "MacBookPro18,*",
    "Mac14,*", "Mac15,*", "Mac16,*",
)

# Thunderbolt / USB-C port counts.
EXPECTED_PORTS = {
    # MacBook Air
    "MacBookAir10,1": 2, "Mac14,2": 2, "Mac15,12": 2, "Mac15,13": 2,
    # MacBook Pro 13"/14" with two ports
    "MacBookPro17,1": 2, "Mac14,7": 2, "Mac15,3": 2, "Mac16,1": 2,
    "MacBookPro15,4": 2, "MacBookPro15,2": 2, "MacBookPro14,1": 2,
    # MacBook Pro 14"/16" with three ports
    "MacBookPro18,1": 3, "MacBookPro18,2": 3, "MacBookPro18,3": 3, "MacBookPro18,4": 3,
    "Mac14,5": 3, "Mac14,6": 3, "Mac14,9": 3, "Mac14,10": 3,
    "Mac15,6": 3, "Mac15,7": 3, "Mac15,8": 3, "Mac15,9": 3, "Mac15,10": 3, "Mac15,11": 3,
    "Mac16,5": 3, "Mac16,6": 3, "Mac16,7": 3, "Mac16,8": 3,
    # Intel MacBook Pro with four ports
    "MacBookPro15,1": 4, "MacBookPro15,3": 4, "MacBookPro16,1": 4, "MacBookPro16,4": 4,
    "MacBookPro14,3": 4, "MacBookPro13,3": 4,
    # Mac mini
    "Macmini9,1": 2, "Mac14,3": 2, "Mac14,12": 4, "Mac16,10": 3, "Mac16,11": 5, "Macmini8,1": 4,
    # Mac Studio
    "Mac13,1": 6, "Mac13,2": 6, "Mac14,13": 6, "Mac14,14": 6,
    # Mac Pro
    "MacPro7,1": 8, "Mac14,8": 8,
}

# (pattern, checklist text); first match wins.
SD_SLOT_CHECKS = (
    (("MacBookPro18,*", "Mac14,5", "Mac14,6", "Mac14,9", "Mac14,10",
      "Mac15,3", "Mac15,6", "Mac15,7", "Mac15,8", "Mac15,9", "Mac15,10", "Mac15,11",
      "Mac16,1", "Mac16,5", "Mac16,6", "Mac16,7", "Mac16,8"),
     "Test SD card slot (right side)"),
    (("MacBookPro11,4", "MacBookPro11,5", "MacBookPro11,2", "MacBookPro11,3",
      "MacBookPro10,1", "MacBookPro10,2", "MacBookPro9,1"),
     "Test SD card slot"),
    (("iMac12,*", "iMac13,*", "iMac14,*", "iMac15,*", "iMac16,*", "iMac17,*",
      "iMac18,*", "iMac19,*", "iMac20,*"),
     "Test SD card slot (back of display)"),
    (("Mac13,1", "Mac13,2", "Mac14,13", "Mac14,14"),
     "Test SD card slot (front of device)"),
)

HEADPHONE_CHECKS = (
    (("Macmini9,1",), "Test headphone jack (front of device)"),
    (("Macmini*",), "Test headphone jack if present"),
    (("MacBookAir*", "MacBookPro*", "iMac*", "MacPro*"), "Test headphone jack"),
)

# Model-name fragment -> (device type, display, camera, speakers, mic, keyboard)
FORM_FACTORS = (
    ("MacBook", ("laptop", True, True, True, True, True)),
    ("iMac", ("all-in-one", True, True, True, True, False)),
    ("Mac mini", ("desktop", False, False, True, False, False)),
    ("Mac Studio", ("desktop", False, False, True, True, False)),
    ("Mac Pro", ("desktop", False, False, False, False, False)),
)
# Unknown models are treated as laptops so no component test is skipped.
UNKNOWN_FORM_FACTOR = ("unknown", True, True, True, True, True)

ETHERNET_MODELS = ("Mac mini", "Mac Studio", "Mac Pro", "iMac")


def matches(model_id, patterns):
    return any(fnmatch.fnmatchcase(model_id or "", p) for p in patterns)


def first_match(model_id, table):
    for patterns, text in table:
        if matches(model_id, patterns):
            return text
    return None


def form_factor(model_name):
    for fragment, flags in FORM_FACTORS:
        if fragment in (model_name or ""):
            return flags
    return UNKNOWN_FORM_FACTOR


def keyboard_type(model_id, apple_silicon):
    if model_id in BUTTERFLY_KEYBOARD_MODELS:
        return "Butterfly"
    if matches(model_id, SCISSOR_KEYBOARD_PATTERNS) or apple_silicon:
        return "Magic Keyboard (Scissor)"
    return "Standard"
