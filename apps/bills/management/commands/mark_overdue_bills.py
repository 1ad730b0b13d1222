"""
Management command to mark past-due bill shares as Overdue.

Meant to run once a day from cron or a platform scheduler.

Usage:
    python manage.py mark_overdue_bills
    python manage.py mark_overdue_bills --date 2024-10-15 --dry-run
"""

import datetime

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from apps.bills.models import BillShare, ShareStatus
from apps.bills.services import BillShareStateMachine


class Command(BaseCommand):
    help = 'Flip Unpaid bill shares whose due date has passed to Overdue'

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            help='Reference date (YYYY-MM-DD), defaults to today',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be updated without making changes',
        )

    def handle(self, *args, **options):
        if options['date']:
            try:
                today = datetime.date.fromisoformat(options['date'])
            except ValueError:
                raise CommandError(f"Invalid date: {options['date']}")
        else:
            today = timezone.localdate()

        if options['dry_run']:
            due = BillShare.objects.filter(
                status=ShareStatus.UNPAID,
                bill__due_date__lt=today,
            ).select_related('bill')

            if not due.exists():
                self.stdout.write(self.style.SUCCESS('No shares are past due.'))
                return

            for share in due:
                self.stdout.write(
                    f'  - {share.bill.title} | {share.user_name} | {share.amount} | due {share.bill.due_date}'
                )
            self.stdout.write(self.style.WARNING('\n--dry-run mode: No changes made.'))
            return

        updated = BillShareStateMachine.mark_overdue_shares(today=today)
        self.stdout.write(self.style.SUCCESS(f'Marked {updated} share(s) overdue as of {today}.'))
