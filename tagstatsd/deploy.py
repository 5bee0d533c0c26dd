import enum
import os
import platform

CANARY_MARKER = '/var/run/canary'
CONTROL_MARKER = '/var/run/control'


class DeployType(enum.Enum):
    NONE = ''
    CANARY = 'canary'
    CONTROL = 'control'

    def __bool__(self):
        return self is not DeployType.NONE

    def __str__(self):
        return self.value


class DeployTypeResolver(object):
    """Tells whether this host belongs to a canary or control cohort.

    The cohort is advertised by marker files dropped by the deploy tooling.
    A host carrying both markers is a canary.
    """

    def __init__(self, canary_marker=CANARY_MARKER, control_marker=CONTROL_MARKER):
        self.canary_marker = canary_marker
        self.control_marker = control_marker

    def is_canary(self):
        return os.path.exists(self.canary_marker)

    def is_control(self):
        return os.path.exists(self.control_marker)

    def resolve(self):
        if self.is_canary():
            return DeployType.CANARY
        if self.is_control():
            return DeployType.CONTROL
        return DeployType.NONE


def current_hostname():
    return platform.node()
