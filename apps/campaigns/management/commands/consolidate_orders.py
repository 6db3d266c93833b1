"""
Management command to merge duplicate orders (same user, same campaign).

Each user keeps their earliest order; items of later orders are moved into
it or added to the matching item's quantity, and repeated products within
one order are folded into a single item. Shipping is redistributed
afterwards unless --no-redistribute is given.

Usage:
    python manage.py consolidate_orders
    python manage.py consolidate_orders --dry-run
    python manage.py consolidate_orders --campaign <uuid> --no-redistribute
"""

from uuid import UUID

from django.core.management.base import BaseCommand, CommandError

from apps.campaigns.models import Campaign
from apps.campaigns.services import (
    consolidate_campaign,
    find_duplicate_item_groups,
    find_duplicate_order_groups,
    reconcile_campaign,
    run_for_all_campaigns,
)


class Command(BaseCommand):
    help = 'Merge duplicate orders per user and campaign, then redistribute shipping'

    def add_arguments(self, parser):
        parser.add_argument(
            '--campaign',
            action='append',
            dest='campaign_ids',
            type=UUID,
            metavar='UUID',
            help='Only process this campaign (can be repeated). Defaults to all campaigns.',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show duplicate order groups without making changes',
        )
        parser.add_argument(
            '--no-redistribute',
            action='store_true',
            help='Skip shipping redistribution after merging (totals stay stale)',
        )

    def handle(self, *args, **options):
        campaign_ids = options['campaign_ids']

        groups = []
        item_groups = []
        for campaign_id in campaign_ids or [None]:
            groups.extend(find_duplicate_order_groups(campaign_id=campaign_id))
            item_groups.extend(find_duplicate_item_groups(campaign_id=campaign_id))

        if not groups and not item_groups:
            self.stdout.write(
                self.style.SUCCESS('No duplicate orders found. All good!')
            )
            return

        if groups:
            self.stdout.write(f'\nFound {len(groups)} duplicate order group(s):\n')
        for group in groups:
            self.stdout.write(
                f'  - Campaign {group["campaign_id"]} | User {group["user_id"]} | '
                f'{group["count"]} orders'
            )
        if item_groups:
            self.stdout.write(f'\nFound {len(item_groups)} repeated product(s) within an order:\n')
        for group in item_groups:
            self.stdout.write(
                f'  - Campaign {group["campaign_id"]} | Order {group["order_id"]} | '
                f'Product {group["product_id"]} x{group["count"]} items'
            )

        if options['dry_run']:
            self.stdout.write(
                self.style.WARNING('\n--dry-run mode: No changes made.')
            )
            return

        affected_ids = list(dict.fromkeys(
            group['campaign_id'] for group in groups + item_groups
        ))
        operation = consolidate_campaign if options['no_redistribute'] else reconcile_campaign
        summary = run_for_all_campaigns(operation, campaign_ids=affected_ids)

        names = dict(Campaign.objects.filter(id__in=affected_ids).values_list('id', 'name'))
        for entry in summary['results']:
            result = entry['result']
            consolidation = result.get('consolidation', result)
            self.stdout.write(
                f'{names.get(entry["campaign_id"], entry["campaign_id"])}: merged '
                f'{consolidation["merged_groups"]} group(s), removed '
                f'{len(consolidation["removed_order_ids"])} order(s), folded '
                f'{consolidation["merged_items"]} item(s)'
            )

        for failure in summary['failures']:
            self.stdout.write(
                self.style.ERROR(f'✗ {failure["campaign_id"]}: {failure["error"]}')
            )

        merge_failed = sum(1 for f in summary['failures'] if f['kind'] == 'error')
        audit_failed = sum(1 for f in summary['failures'] if f['kind'] == 'integrity')
        problems = []
        if merge_failed:
            problems.append(f'{merge_failed} campaign(s) failed consolidation')
        if audit_failed:
            problems.append(
                f'{audit_failed} campaign(s) consolidated but failed the integrity '
                f'audit after shipping redistribution'
            )
        if problems:
            raise CommandError('; '.join(problems))

        self.stdout.write(
            self.style.SUCCESS(f'\n✓ Consolidated duplicates in {summary["succeeded"]} campaign(s)!')
        )
        if options['no_redistribute']:
            self.stdout.write(
                self.style.WARNING('Shipping not redistributed; run distribute_shipping next.')
            )
