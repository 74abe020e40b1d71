# mac_audit/phases
# Audit phases in run order. Each entry is (section title, phase(ctx)).

from ..stress import run_stress_test
from .backup import check_time_machine
from .components import check_component_authenticity
from .connectivity import check_ports_connectivity
from .graphics import check_gpu_health
from .identity import check_system_identity, verify_physical_serial
from .locks import check_activation_lock, check_enterprise_locks
from .power import check_battery_health
from .recovery import check_recovery_readiness
from .security import check_security_posture
from .stability import check_system_stability
from .storage import check_storage_health
from .thermal import check_thermal_sensors

PHASES = (
    ("PHASE 1: PHYSICAL SERIAL VERIFICATION", verify_physical_serial),
    ("PHASE 2: SYSTEM IDENTITY", check_system_identity),
    ("PHASE 3: ENTERPRISE LOCKS (MDM/DEP)", check_enterprise_locks),
    ("PHASE 4: ACTIVATION LOCK (iCloud)", check_activation_lock),
    ("PHASE 5: STORAGE HEALTH", check_storage_health),
    ("PHASE 6: BATTERY HEALTH", check_battery_health),
    ("PHASE 7: GPU & GRAPHICS", check_gpu_health),
    ("PHASE 8: COMPONENT AUTHENTICITY", check_component_authenticity),
    ("PHASE 9: SECURITY POSTURE", check_security_posture),
    ("PHASE 10: PORTS & CONNECTIVITY", check_ports_connectivity),
    ("PHASE 11: SYSTEM STABILITY", check_system_stability),
    ("PHASE 12: THERMAL SENSORS", check_thermal_sensors),
    ("PHASE 13: RECOVERY READINESS", check_recovery_readiness),
    ("PHASE 14: TIME MACHINE", check_time_machine),
    ("PHASE 15: THERMAL STRESS TEST", run_stress_test),
)
