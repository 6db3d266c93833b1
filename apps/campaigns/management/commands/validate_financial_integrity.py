"""
Management command to audit campaign books.

Read-only. For each campaign checks that shipping fees add up to the
shipping cost, that totals add up to subtotals plus shipping, and that
paid plus unpaid totals cover every order.

Usage:
    python manage.py validate_financial_integrity
    python manage.py validate_financial_integrity --campaign <uuid>
"""

from uuid import UUID

from django.core.management.base import BaseCommand, CommandError

from apps.campaigns.services import run_for_all_campaigns, validate_campaign


class Command(BaseCommand):
    help = 'Validate that every campaign\'s order amounts balance'

    def add_arguments(self, parser):
        parser.add_argument(
            '--campaign',
            action='append',
            dest='campaign_ids',
            type=UUID,
            metavar='UUID',
            help='Only validate this campaign (can be repeated). Defaults to all campaigns.',
        )

    def _check_line(self, label, passed):
        if passed:
            return f'    {label}: ' + self.style.SUCCESS('✓ PASS')
        return f'    {label}: ' + self.style.ERROR('✗ FAIL')

    def handle(self, *args, **options):
        summary = run_for_all_campaigns(
            validate_campaign,
            campaign_ids=options['campaign_ids'],
        )

        self.stdout.write(f'Validating {summary["total"]} campaign(s)...')

        for entry in summary['results']:
            report = entry['result']
            self.stdout.write(f'\nCampaign: {report["campaign_name"]} ({report["campaign_id"]})')
            self.stdout.write(f'  Orders: {report["order_count"]}')
            self.stdout.write(f'  Campaign Shipping Cost: {report["shipping_cost"]}')
            self.stdout.write(f'  Sum of Order Shipping Fees: {report["sum_shipping_fees"]}')
            self.stdout.write(f'  Sum of Subtotals: {report["sum_subtotals"]}')
            self.stdout.write(f'  Sum of Totals: {report["sum_totals"]}')
            self.stdout.write(f'  Expected Total: {report["expected_total"]}')
            self.stdout.write(f'  Sum of Paid: {report["sum_paid"]}')
            self.stdout.write(f'  Sum of Unpaid: {report["sum_unpaid"]}')
            self.stdout.write('  Checks:')
            self.stdout.write(self._check_line('Shipping Distribution', report['shipping_match']))
            self.stdout.write(self._check_line('Total = Subtotals + Shipping', report['total_match']))
            self.stdout.write(self._check_line('Total = Paid + Unpaid', report['paid_unpaid_match']))

        for failure in summary['failures']:
            self.stdout.write(
                self.style.ERROR(f'✗ {failure["campaign_id"]}: {failure["error"]}')
            )

        self.stdout.write('\n=== SUMMARY ===')
        self.stdout.write(f'Total Campaigns: {summary["total"]}')
        self.stdout.write(f'Passed: {summary["succeeded"]}')
        self.stdout.write(f'Failed: {summary["failed"]}')

        if summary['failed']:
            raise CommandError(f'{summary["failed"]} campaign(s) failed integrity validation')
