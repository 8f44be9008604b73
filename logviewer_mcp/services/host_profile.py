"""
Host-type heuristic.

Detects whether the server runs on a Victron Venus OS device (Cerbo GX and
similar). The result only selects which remediation text accompanies a
"logs not found" response; it never changes which sources are read.
"""

import re
import socket
from collections.abc import Callable
from pathlib import Path

from ..config.settings import LogViewerConfig
from ..models.log_record import HostProfile
from ..utils.logging import get_logger

logger = get_logger(__name__)

SignalCheck = Callable[[], bool]

DEVICE_SUGGESTION = (
    "On Venus OS (Cerbo GX) SignalK logs are written by multilog to "
    "/data/log/signalk-server/current. Check that the signalk-server service is "
    "running (svstat /service/signalk-server) and that the SignalK user can read /data/log."
)
GENERIC_SUGGESTION = "Check that SignalK is logging and accessible"


class HostProfiler:
    """
    Evaluates independent detection signals and ORs them together.

    Every signal is fail-safe: an error while checking it counts as "absent".

    Args:
        config: Paths and patterns to check
        hostname_provider: Returns the current hostname
    """

    def __init__(
        self,
        config: LogViewerConfig,
        hostname_provider: Callable[[], str] = socket.gethostname,
    ) -> None:
        self.config = config
        self.hostname_provider = hostname_provider
        self._version_re = re.compile(config.device_version_pattern)

    def _hostname(self) -> str:
        return self.hostname_provider().strip().lower()

    def _marker_dir_exists(self) -> bool:
        return Path(self.config.device_marker_dir).is_dir()

    def check_hostname(self) -> bool:
        """Known device hostname and the device data directory exists."""
        return self._hostname() in self.config.device_hostnames and self._marker_dir_exists()

    def check_marker_file(self) -> bool:
        return Path(self.config.device_marker_file).is_file()

    def check_version_file(self) -> bool:
        """Version file holds a build stamp like 20231003134955 and the data directory exists."""
        path = Path(self.config.device_version_file)
        if not path.is_file():
            return False
        first_line = path.read_text(encoding="utf-8").splitlines()[:1]
        if not first_line or not self._version_re.match(first_line[0].strip()):
            return False
        return self._marker_dir_exists()

    def check_release_file(self) -> bool:
        path = Path(self.config.device_release_file)
        if not path.is_file():
            return False
        content = path.read_text(encoding="utf-8", errors="replace")
        return self.config.device_release_token.lower() in content.lower()

    def signals(self) -> dict[str, SignalCheck]:
        return {
            "hostname": self.check_hostname,
            "marker_file": self.check_marker_file,
            "version_file": self.check_version_file,
            "release_file": self.check_release_file,
        }

    def detect(self) -> HostProfile:
        """Run every signal and combine them with logical OR."""
        results: dict[str, bool] = {}
        for name, check in self.signals().items():
            try:
                results[name] = bool(check())
            except (OSError, UnicodeError, ValueError) as e:
                logger.debug("Host signal check failed", extra={"signal": name, "error": str(e)})
                results[name] = False

        try:
            hostname: str | None = self._hostname()
        except OSError:
            hostname = None

        profile = HostProfile(
            is_specialized_device=any(results.values()),
            signals=results,
            hostname=hostname,
        )
        logger.debug("Host profile detected", extra={"host_profile": profile.model_dump()})
        return profile


def suggestion_for(profile: HostProfile) -> str:
    """Remediation text for an exhausted fallback chain."""
    return DEVICE_SUGGESTION if profile.is_specialized_device else GENERIC_SUGGESTION