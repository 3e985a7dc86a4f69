"""
Degradation classifier.

Decides, after the fan-out, whether a roast request can go on:
1. Too many reads came back 403 -> the account lacks scope/allowlisting, abort
2. Nothing at all to roast -> abort
3. Anything else -> proceed with whatever succeeded

The checks always run in that order.
"""

import logging
import math
from typing import Dict, Optional

from roaster.errors import InsufficientDataError, UpstreamAuthorizationDeniedError
from roaster.schemas.profile import ListeningProfile
from roaster.schemas.upstream import UpstreamFailure, UpstreamOutcome

logger = logging.getLogger(__name__)

# Half of the issued reads: 5 of the 10 Spotify requests
FORBIDDEN_RATIO = 0.5

FORBIDDEN_MESSAGE = (
    "Spotify refused access to your listening data. This app may still be in "
    "development mode and your account is not on its allowlist, or the required "
    "permissions were not granted. Ask the app owner to add you, then try again."
)

NO_DATA_MESSAGE = (
    "We couldn't find enough listening data to roast. Listen to some music, "
    "follow a few artists or save some tracks, then come back!"
)


def forbidden_threshold(issued: int, ratio: float = FORBIDDEN_RATIO) -> int:
    """Number of 403s (out of `issued`) that counts as a bulk authorization failure."""
    if issued <= 0:
        return 0
    return max(1, math.ceil(issued * ratio))


def count_forbidden(outcomes: Dict[str, UpstreamOutcome]) -> int:
    return sum(
        1 for o in outcomes.values()
        if isinstance(o, UpstreamFailure) and o.forbidden
    )


class DegradationClassifier:
    """Applies the forbidden-majority and zero-data checks"""

    def __init__(self, forbidden_ratio: float = FORBIDDEN_RATIO):
        self.forbidden_ratio = forbidden_ratio

    def check_authorization(self, outcomes: Dict[str, UpstreamOutcome]) -> None:
        """
        Raises:
            UpstreamAuthorizationDeniedError: if the forbidden count meets the threshold
        """
        issued = len(outcomes)
        forbidden = count_forbidden(outcomes)
        threshold = forbidden_threshold(issued, self.forbidden_ratio)

        if issued and forbidden >= threshold:
            logger.warning(f"Upstream authorization denied: {forbidden}/{issued} reads forbidden (threshold {threshold})")
            raise UpstreamAuthorizationDeniedError(FORBIDDEN_MESSAGE)

        failed = sum(1 for o in outcomes.values() if not o.ok)
        if failed:
            logger.info(f"Proceeding with partial data: {failed}/{issued} reads failed ({forbidden} forbidden)")

    def check_data(self, profile: ListeningProfile) -> None:
        """
        Raises:
            InsufficientDataError: if every collection is empty
        """
        total = profile.total_items()
        if total == 0:
            logger.warning(f"No listening data for {profile.service} profile")
            raise InsufficientDataError(NO_DATA_MESSAGE)
        logger.info(f"Profile has {total} records across {sum(1 for c in profile.counts().values() if c)} collections")

    def classify(
        self,
        profile: ListeningProfile,
        outcomes: Optional[Dict[str, UpstreamOutcome]] = None,
    ) -> None:
        """Run both checks in order; outcomes are absent for pre-fetched bundles."""
        if outcomes is not None:
            self.check_authorization(outcomes)
        self.check_data(profile)
