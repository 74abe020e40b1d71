# mac_audit/phases/components.py
# Camera, audio, display, keyboard and Touch Bar. Only the components this
# form factor actually has are tested; desktops get peripheral guidance.

import time

from .. import config, models
from ..parsers import contains, field
from ..utils import stop_background

DISPLAY_TEST_HTML = """<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<title>Mac Audit - Display Test</title>
<style>
  * { margin: 0; padding: 0; cursor: none; }
  body { overflow: hidden; }
  #screen { width: 100vw; height: 100vh; font-family: -apple-system, sans-serif; }
  #info { position: fixed; bottom: 20px; left: 50%; transform: translateX(-50%);
          padding: 15px 30px; background: rgba(0,0,0,0.7); color: white;
          border-radius: 10px; font-size: 18px; transition: opacity 0.5s; }
  #info.hidden { opacity: 0; }
</style>
</head>
<body>
<div id="screen"><div id="info"></div></div>
<script>
  const colors = [
    ['#FF0000', 'RED - Check for stuck pixels'],
    ['#00FF00', 'GREEN - Check for dead pixels'],
    ['#0000FF', 'BLUE - Check for color uniformity'],
    ['#FFFFFF', 'WHITE - Check for backlight bleed'],
    ['#000000', 'BLACK - Check for dead pixels & burn-in'],
    ['#808080', 'GRAY - Check for uniformity'],
  ];
  let index = 0;
  const screen = document.getElementById('screen');
  const info = document.getElementById('info');

  function show() {
    const [bg, name] = colors[index];
    screen.style.backgroundColor = bg;
    info.textContent = `[${index + 1}/${colors.length}] ${name} | SPACE=Next ESC=Exit`;
    info.style.color = (bg === '#FFFFFF' || bg === '#00FF00') ? '#000' : '#FFF';
    info.classList.remove('hidden');
    setTimeout(() => info.classList.add('hidden'), 3000);
  }

  function next() { index = (index + 1) % colors.length; show(); }

  document.addEventListener('keydown', (e) => {
    if (e.code === 'Space') { e.preventDefault(); next(); }
    else if (e.code === 'Escape' || e.key === 'q' || e.key === 'Q') { window.close(); }
    else { info.classList.remove('hidden'); }
  });
  document.addEventListener('click', next);
  document.body.addEventListener('click', () => {
    const el = document.documentElement;
    (el.requestFullscreen || el.webkitRequestFullscreen).call(el);
  }, {once: true});
  show();
</script>
</body>
</html>
"""


def check_component_authenticity(ctx):
    _camera(ctx)
    _audio(ctx)
    _display(ctx)
    _keyboard(ctx)

    if ctx.caps.has_touch_bar:
        ctx.console.subsection("Touch Bar")
        ctx.ledger.info("Touch Bar present on this model")
        ctx.ledger.add_manual_check("Test Touch Bar: Brightness, volume, app-specific controls")
        ctx.ledger.add_manual_check("Check for dead spots or unresponsive areas on Touch Bar")


def _camera(ctx):
    ledger, caps = ctx.ledger, ctx.caps
    ctx.console.subsection("Camera")

    if not caps.has_camera:
        ledger.info(f"No built-in camera ({caps.device_type} Mac)")
        ledger.add_manual_check("Test external webcam if needed for video calls")
        return

    camera = ctx.cache.get("camera")
    if not contains(camera, r"facetime|built-in"):
        ledger.fail("No built-in camera detected")
        ledger.add_manual_check("Verify camera hardware is present and functional")
    else:
        maker = field(camera, "Manufacturer")
        if maker == "Apple Inc.":
            ledger.passed("Camera: Genuine Apple FaceTime camera")
        elif maker:
            ledger.fail(f"Camera: Non-genuine ({maker})")
        else:
            ledger.info("Camera: Present (manufacturer not reported)")
    ledger.add_manual_check("Test camera: FaceTime or Photo Booth")


def _builtin_audio_maker(audio):
    lines = audio.splitlines()
    for i, line in enumerate(lines):
        if "Built-in" in line:
            return field("\n".join(lines[i:i + 11]), "Manufacturer")
    return None


def _play_tone(ctx):
    cmd = ["say", "-v", "Samantha", "Audio test. Left speaker. Right speaker."]
    seconds = config.SPEECH_SECONDS
    for sound in config.TEST_SOUNDS:
        if ctx.host.is_file(sound):
            cmd, seconds = ["afplay", sound], config.SOUND_SECONDS
            break

    proc = ctx.launcher(cmd)
    try:
        time.sleep(seconds)
    finally:
        stop_background(proc)


def _audio(ctx):
    ledger, console, caps = ctx.ledger, ctx.console, ctx.caps
    console.subsection("Audio")

    if caps.has_speakers:
        maker = _builtin_audio_maker(ctx.cache.get("audio"))
        if maker is None:
            ledger.warn("Built-in speakers not clearly identified")
        elif maker == "Apple Inc.":
            ledger.passed("Speakers: Genuine Apple")
        elif maker:
            ledger.warn(f"Speakers: Non-genuine ({maker})")
        else:
            ledger.passed("Speakers: Built-in detected")

        console.say("")
        console.say("    > Playing test sound... Listen for audio from ALL speakers.")
        _play_tone(ctx)

        answer = console.ask_yes_no("Did you hear the sound clearly from all speakers?")
        if answer == "y":
            ledger.passed("Audio test: User confirmed sound output")
        elif answer == "n":
            ledger.fail("Audio test: User reports audio problem!")
            ledger.add_manual_check("CRITICAL: Investigate speaker/audio hardware issue")
        else:
            ledger.info("Audio test: Response unclear")
            ledger.add_manual_check("Re-test speakers: Play music, verify all speakers work")
    else:
        ledger.info("No built-in speakers (Mac Pro requires external audio)")
        ledger.info("Audio output: Available via headphone jack or connected display")
        ledger.add_manual_check("Test audio: Connect headphones, speakers, or use display audio")

    if caps.has_mic:
        ledger.info("Built-in microphone: Present")
        ledger.add_manual_check("Test microphone: Voice Memos or video call")
    else:
        ledger.info(f"No built-in microphone ({caps.device_type})")
        ledger.add_manual_check("Test external microphone if needed")


def _display(ctx):
    ledger, console, caps = ctx.ledger, ctx.console, ctx.caps
    console.subsection("Display")
    displays = ctx.cache.get("displays")

    if not caps.has_display:
        ledger.info(f"No built-in display ({caps.device_type} Mac)")
        ledger.add_manual_check("Test ALL video outputs with external display(s)")
        ledger.add_manual_check("Verify expected resolution and refresh rate on external display")
        if contains(displays, r"Thunderbolt|HDMI|DisplayPort"):
            ledger.info("Video output: Via Thunderbolt/USB-C ports")
        return

    resolution = field(displays, "Resolution")
    if resolution:
        ledger.info(f"Resolution: {resolution}")
    if contains(displays, r"retina"):
        ledger.passed("Retina Display: Yes")

    console.say("")
    console.say("    > Launching display test...")
    console.say("      A browser window will open with a fullscreen color test.")
    console.say("      Press SPACE to cycle colors. Press ESC or Q to exit.")
    console.say("      Look for: dead pixels, stuck pixels, uneven backlight.")

    page = ctx.artifacts.path("display_test", ".html")
    try:
        with open(page, "w", encoding="utf-8") as f:
            f.write(DISPLAY_TEST_HTML)
        ctx.launcher(["open", page])
        console.pause("    ? Press [ENTER] when done with display test...")
    finally:
        ctx.artifacts.discard(page)

    answer = console.ask_yes_no("Were there any display issues (dead pixels, bleed, burn-in)?")
    if answer == "y":
        ledger.fail("Display test: User reports display issues!")
        ledger.add_manual_check("CRITICAL: Document display defects, negotiate price")
    elif answer == "n":
        ledger.passed("Display test: User confirms no visible defects")
    else:
        ledger.info("Display test: Response unclear")
        ledger.add_manual_check("Re-check display for dead pixels and backlight bleed")

    ledger.add_manual_check("Test True Tone if supported (Settings > Displays)")


def _keyboard(ctx):
    ledger, console, caps = ctx.ledger, ctx.console, ctx.caps
    model_id = ctx.identity.model_id

    if not caps.has_keyboard:
        console.subsection("Input Devices")
        ledger.info(f"No built-in keyboard/trackpad ({caps.device_type} Mac)")
        ledger.add_manual_check("Test with YOUR keyboard and mouse before purchase")
        if caps.has_touch_id:
            ledger.info("Note: Touch ID only works with Apple's Magic Keyboard with Touch ID")
        return

    console.subsection("Keyboard & Trackpad")
    ledger.info(f"Keyboard type: {models.keyboard_type(model_id, caps.apple_silicon)}")
    ledger.info("Trackpad: Force Touch (pressure-sensitive)")
    ledger.add_manual_check("Test EVERY key using Keyboard Viewer or typing test")
    ledger.add_manual_check("Test trackpad: All corners, Force Touch click, gestures")

    if model_id in models.BUTTERFLY_PROBLEM_MODELS:
        ledger.warn("Butterfly keyboard - prone to sticky/repeating keys")
        ledger.add_manual_check("Type extensively: Check for sticky, repeating, or dead keys")
