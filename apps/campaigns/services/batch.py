"""
Batch driver - run a campaign operation over many campaigns.

Each campaign is processed on its own: a failure is logged and collected in
the summary, and the run continues with the next campaign.
"""

import logging
from typing import Callable, Iterable, Optional
from uuid import UUID

from django.db import DatabaseError

from apps.campaigns.models import Campaign
from .exceptions import CampaignsServiceError
from .integrity_validation import validate_campaign
from .order_consolidation import consolidate_campaign
from .shipping_distribution import distribute_shipping

logger = logging.getLogger(__name__)


def reconcile_campaign(*, campaign_id: UUID) -> dict:
    """
    Consolidate duplicates, redistribute shipping, then audit one campaign.

    Consolidation and distribution each run in their own transaction under
    the campaign lock; the audit reads the committed result.

    Returns:
        Dictionary with consolidation, distribution and integrity results
    """
    consolidation = consolidate_campaign(campaign_id=campaign_id)
    distribution = distribute_shipping(campaign_id=campaign_id)
    integrity = validate_campaign(campaign_id=campaign_id)
    return {
        'campaign_id': campaign_id,
        'consolidation': consolidation,
        'distribution': distribution,
        'integrity': integrity,
    }


def _result_passed(result) -> bool:
    """Integrity reports count as failures when a check did not pass."""
    if isinstance(result, dict):
        if 'passed' in result:
            return result['passed']
        if 'integrity' in result:
            return result['integrity']['passed']
    return True


def run_for_all_campaigns(
    operation: Callable[..., dict],
    *,
    campaign_ids: Optional[Iterable[UUID]] = None
) -> dict:
    """
    Run an operation for every campaign (or the given ones) independently.

    Args:
        operation: Service function taking ``campaign_id`` as keyword, e.g.
            distribute_shipping, consolidate_campaign, validate_campaign or
            reconcile_campaign
        campaign_ids: Optional UUIDs to process; defaults to all campaigns,
            oldest first

    Returns:
        Dictionary with:
        - total: int - Campaigns processed
        - succeeded: int - Campaigns that completed (and passed, for audits)
        - failed: int - Campaigns that raised or failed an audit
        - results: list - {campaign_id, result} per completed campaign
        - failures: list - {campaign_id, kind, error} per failed campaign;
          kind is 'error' when the operation raised and 'integrity' when it
          completed but its audit did not pass

    Example:
        >>> summary = run_for_all_campaigns(validate_campaign)
        >>> print(f"Passed: {summary['succeeded']}, Failed: {summary['failed']}")
    """
    if campaign_ids is None:
        campaign_ids = Campaign.objects.order_by('created_at', 'id').values_list('id', flat=True)
    campaign_ids = list(campaign_ids)
    operation_name = getattr(operation, '__name__', repr(operation))

    results = []
    failures = []
    for campaign_id in campaign_ids:
        try:
            result = operation(campaign_id=campaign_id)
        except (CampaignsServiceError, DatabaseError) as e:
            logger.exception("%s failed for campaign %s", operation_name, campaign_id)
            failures.append({'campaign_id': campaign_id, 'kind': 'error', 'error': str(e)})
            continue

        results.append({'campaign_id': campaign_id, 'result': result})
        if not _result_passed(result):
            failures.append({
                'campaign_id': campaign_id,
                'kind': 'integrity',
                'error': 'Integrity check failed',
            })

    summary = {
        'total': len(campaign_ids),
        'succeeded': len(campaign_ids) - len(failures),
        'failed': len(failures),
        'results': results,
        'failures': failures,
    }
    logger.info(
        "%s finished: total=%d succeeded=%d failed=%d",
        operation_name, summary['total'], summary['succeeded'], summary['failed'],
    )
    return summary
