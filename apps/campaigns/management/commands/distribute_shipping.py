"""
Management command to redistribute shipping across campaign orders.

Recomputes every order's shipping_fee and total from the campaign's
shipping cost and the orders' weights.

Usage:
    python manage.py distribute_shipping
    python manage.py distribute_shipping --campaign <uuid> [--campaign <uuid> ...]
"""

from uuid import UUID

from django.core.management.base import BaseCommand, CommandError

from apps.campaigns.services import distribute_shipping, run_for_all_campaigns


class Command(BaseCommand):
    help = 'Distribute each campaign\'s shipping cost across its orders by weight'

    def add_arguments(self, parser):
        parser.add_argument(
            '--campaign',
            action='append',
            dest='campaign_ids',
            type=UUID,
            metavar='UUID',
            help='Only process this campaign (can be repeated). Defaults to all campaigns.',
        )

    def handle(self, *args, **options):
        summary = run_for_all_campaigns(
            distribute_shipping,
            campaign_ids=options['campaign_ids'],
        )

        if summary['total'] == 0:
            self.stdout.write(self.style.WARNING('No campaigns found.'))
            return

        for entry in summary['results']:
            result = entry['result']
            campaign = result['campaign']
            self.stdout.write(
                f'{campaign.name} ({campaign.id}): shipping {result["shipping_cost"]}, '
                f'weight {result["total_weight"]}, {result["orders_updated"]} order(s)'
            )
            for allocation in result['allocations']:
                self.stdout.write(
                    f'  - Order {allocation["order_id"]}: weight {allocation["weight"]}, '
                    f'shipping {allocation["shipping_fee"]}, total {allocation["total"]}'
                )

        for failure in summary['failures']:
            self.stdout.write(
                self.style.ERROR(f'✗ {failure["campaign_id"]}: {failure["error"]}')
            )

        self.stdout.write('\n=== SUMMARY ===')
        self.stdout.write(f'Total Campaigns: {summary["total"]}')
        self.stdout.write(f'Success: {summary["succeeded"]}')
        self.stdout.write(f'Errors: {summary["failed"]}')

        if summary['failed']:
            raise CommandError(f'{summary["failed"]} campaign(s) failed shipping distribution')

        self.stdout.write(self.style.SUCCESS('\n✓ Shipping distributed for all campaigns.'))
