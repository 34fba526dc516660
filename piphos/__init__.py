"""piphos: keep track of dynamic public IP addresses in a private gist."""

__version__ = "1.0.0"

from .beacon import BEACONS, BeaconDescriptor, WebBeacon, select_beacon
from .commands import ping, pull, push
from .errors import ErrorKind, PiphosError
from .tender import GithubTender
