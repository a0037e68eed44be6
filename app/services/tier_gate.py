from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from loguru import logger

from app.core.config import settings
from app.core.security import redact_token
from app.models.payment import AnalysisPermission, PaymentTier
from app.services.payments import PaymentStore

FREE_TIER = PaymentTier(
    key="free",
    name="Free Tier",
    max_images=3,
    price=0,
    description="Analyze up to 3 images for free",
)
STANDARD_TIER = PaymentTier(
    key="standard",
    name="Standard Pack",
    max_images=10,
    price=500,
    description="Analyze 4-10 images ($5)",
)
PREMIUM_TIER = PaymentTier(
    key="premium",
    name="Premium Pack",
    max_images=50,
    price=1000,
    description="Analyze 11 or more images ($10)",
)

PRICING_TIERS: tuple[PaymentTier, ...] = (FREE_TIER, STANDARD_TIER, PREMIUM_TIER)


def calculate_tier(image_count: int) -> PaymentTier:
    """Map a batch size to its pricing tier."""
    if image_count <= FREE_TIER.max_images:
        return FREE_TIER
    if image_count <= STANDARD_TIER.max_images:
        return STANDARD_TIER
    return PREMIUM_TIER


class TierGate:
    """
    Decides whether a batch may proceed.

    Free batches always pass. Paid batches need a completed payment for the same
    tier inside the payment window. Any failure talking to the payment store
    denies the batch.
    """

    def __init__(
        self,
        payment_store: PaymentStore,
        window_hours: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.payment_store = payment_store
        self.window = timedelta(hours=window_hours if window_hours is not None else settings.PAYMENT_WINDOW_HOURS)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def check_permission(self, identity: str | None, image_count: int) -> AnalysisPermission:
        tier = calculate_tier(image_count)

        if not tier.requires_payment:
            return AnalysisPermission(can_analyze=True, payment_required=False, tier=tier)

        if not identity:
            return AnalysisPermission(
                can_analyze=False,
                payment_required=True,
                tier=tier,
                error="Sign in to purchase a paid analysis pack.",
            )

        since = self.clock() - self.window
        try:
            paid = await self.payment_store.has_completed_payment(identity, tier.name, since)
        except Exception as e:
            logger.error(f"[{redact_token(identity)}] Payment check failed for {tier.name}, denying: {e}")
            return AnalysisPermission(
                can_analyze=False,
                payment_required=True,
                tier=tier,
                error="Could not verify payment.",
            )

        if not paid:
            logger.info(f"[{redact_token(identity)}] No completed {tier.name} payment in window")
        return AnalysisPermission(can_analyze=paid, payment_required=not paid, tier=tier)
