"""Step to attach billing totals to each reservation."""

import asyncio
from typing import Optional

from pydantic import ValidationError

from avirato_dashboard.clients.avirato_api_client import (
    AviratoAPIClient,
    AviratoAPIClientError,
    AviratoAuthExpiredError,
)
from avirato_dashboard.config import settings as default_settings
from avirato_dashboard.config.settings import AviratoAPISettings
from avirato_dashboard.models.avirato import Invoice, Reservation
from avirato_dashboard.services.pipeline import PipelineContext, PipelineStep
from avirato_dashboard.transformers.enrichment_transformer import EnrichmentTransformer


class EnrichBillingStep(PipelineStep):
    """Fetch invoices per reservation with bounded concurrency.

    A failed billing lookup leaves that reservation with a zero total and
    marked as paid; it never fails the step.
    """

    def __init__(
        self,
        api_client: AviratoAPIClient,
        api_settings: Optional[AviratoAPISettings] = None,
    ):
        """Initialize the step.

        Args:
            api_client: Avirato API client
            api_settings: Concurrency bound, defaults to global settings
        """
        super().__init__("EnrichBilling")
        api_settings = api_settings or default_settings.avirato
        self.api_client = api_client
        self.concurrency = max(1, api_settings.billing_concurrency)

    async def _enrich_one(
        self,
        reservation: Reservation,
        context: PipelineContext,
        semaphore: asyncio.Semaphore,
        session_expired: asyncio.Event,
    ) -> bool:
        async with semaphore:
            # Lookups still queued when the session expires are not sent
            if session_expired.is_set():
                return False
            try:
                rows = await self.api_client.get_bills(context.site_code, reservation.reservation_id)
                invoices = [Invoice.model_validate(row) for row in rows]
            except AviratoAuthExpiredError:
                session_expired.set()
                raise
            except (AviratoAPIClientError, ValidationError) as e:
                self.logger.warning(
                    "Could not fetch billing for reservation",
                    site_code=context.site_code,
                    reservation_id=reservation.reservation_id,
                    error=str(e),
                )
                EnrichmentTransformer.apply_billing_unavailable(reservation)
                return False

        EnrichmentTransformer.apply_billing(reservation, invoices)
        return True

    async def execute(self, context: PipelineContext) -> bool:
        """Attach billing totals.

        Every lookup has settled before this returns, including when one of
        them hit an expired session.

        Args:
            context: Pipeline context

        Returns:
            True (billing failures degrade per reservation)

        Raises:
            AviratoAuthExpiredError: If any lookup was rejected with a 401
        """
        semaphore = asyncio.Semaphore(self.concurrency)
        session_expired = asyncio.Event()
        outcomes = await asyncio.gather(
            *(
                self._enrich_one(reservation, context, semaphore, session_expired)
                for reservation in context.reservations
            ),
            return_exceptions=True,
        )

        errors = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        failed = sum(1 for ok in outcomes if ok is not True)
        context.stats["billing"] = {
            "reservations": len(outcomes),
            "failed": failed,
            "pending_payment": sum(
                1 for reservation in context.reservations if reservation.is_fully_paid is False
            ),
        }

        if errors:
            expired = [e for e in errors if isinstance(e, AviratoAuthExpiredError)]
            raise (expired or errors)[0]

        self.logger.info(
            "Billing enrichment finished",
            site_code=context.site_code,
            reservations=len(outcomes),
            failed=failed,
        )
        return True

    def is_required(self) -> bool:
        return False
