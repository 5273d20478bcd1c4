"""
Known configuration keys.

Skip/warn overrides for every check plus the reachability targets.
"""

VM_DRIVER = "vm-driver"

SKIP_CHECK_XHYVE_DRIVER = "skip-check-xhyve-driver"
WARN_CHECK_XHYVE_DRIVER = "warn-check-xhyve-driver"
SKIP_CHECK_KVM_DRIVER = "skip-check-kvm-driver"
WARN_CHECK_KVM_DRIVER = "warn-check-kvm-driver"
SKIP_CHECK_HYPERV_DRIVER = "skip-check-hyperv-driver"
WARN_CHECK_HYPERV_DRIVER = "warn-check-hyperv-driver"

SKIP_INSTANCE_IP = "skip-instance-ip"
WARN_INSTANCE_IP = "warn-instance-ip"
SKIP_CHECK_NETWORK_PING = "skip-check-network-ping"
WARN_CHECK_NETWORK_PING = "warn-check-network-ping"
SKIP_CHECK_NETWORK_HTTP = "skip-check-network-http"
WARN_CHECK_NETWORK_HTTP = "warn-check-network-http"
SKIP_CHECK_STORAGE_MOUNT = "skip-check-storage-mount"
WARN_CHECK_STORAGE_MOUNT = "warn-check-storage-mount"
SKIP_CHECK_STORAGE_USAGE = "skip-check-storage-usage"
WARN_CHECK_STORAGE_USAGE = "warn-check-storage-usage"

CHECK_NETWORK_PING_HOST = "check-network-ping-host"
CHECK_NETWORK_HTTP_HOST = "check-network-http-host"

BOOL_KEYS = frozenset({
    SKIP_CHECK_XHYVE_DRIVER,
    WARN_CHECK_XHYVE_DRIVER,
    SKIP_CHECK_KVM_DRIVER,
    WARN_CHECK_KVM_DRIVER,
    SKIP_CHECK_HYPERV_DRIVER,
    WARN_CHECK_HYPERV_DRIVER,
    SKIP_INSTANCE_IP,
    WARN_INSTANCE_IP,
    SKIP_CHECK_NETWORK_PING,
    WARN_CHECK_NETWORK_PING,
    SKIP_CHECK_NETWORK_HTTP,
    WARN_CHECK_NETWORK_HTTP,
    SKIP_CHECK_STORAGE_MOUNT,
    WARN_CHECK_STORAGE_MOUNT,
    SKIP_CHECK_STORAGE_USAGE,
    WARN_CHECK_STORAGE_USAGE,
})

STRING_KEYS = frozenset({
    VM_DRIVER,
    CHECK_NETWORK_PING_HOST,
    CHECK_NETWORK_HTTP_HOST,
})

ALL_KEYS = BOOL_KEYS | STRING_KEYS


def env_var_name(key: str) -> str:
    """Environment variable that overrides ``key``, e.g. VM_PREFLIGHT_SKIP_INSTANCE_IP."""
    return "VM_PREFLIGHT_" + key.upper().replace("-", "_")
