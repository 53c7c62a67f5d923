"""
Force-complete appointments stuck awaiting payment.

Usage:
    python manage.py fix_pending_payments
    python manage.py fix_pending_payments --min-age-minutes 30 --no-email
    python manage.py fix_pending_payments --dry-run
"""

from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from appointments.models import Appointment
from payments.services import ManualReconciliationService


class Command(BaseCommand):
    help = "Force-complete payments of appointments whose gateway notification never arrived"

    def add_arguments(self, parser):
        parser.add_argument(
            "--min-age-minutes",
            type=int,
            default=None,
            help="Only fix appointments pending at least this long "
            f"(default: {settings.RECONCILIATION_MIN_PENDING_MINUTES})",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the appointments that would be fixed without changing anything",
        )
        parser.add_argument(
            "--no-email",
            action="store_true",
            help="Do not queue confirmation emails",
        )

    def handle(self, *args, **options):
        min_age = options["min_age_minutes"]
        if min_age is None:
            min_age = settings.RECONCILIATION_MIN_PENDING_MINUTES

        if options["dry_run"]:
            cutoff = timezone.now() - timedelta(minutes=min_age)
            candidates = (
                Appointment.objects.awaiting_payment()
                .filter(created_at__lte=cutoff)
                .order_by("created_at")
            )
            for appointment in candidates:
                self.stdout.write(f"Would fix {appointment.id} ({appointment.patient})")
            self.stdout.write(f"{candidates.count()} appointments would be fixed")
            return

        result = ManualReconciliationService.fix_all(
            min_pending_minutes=min_age,
            send_email=False if options["no_email"] else None,
        )
        report = result.data

        for item in report.results:
            if not item.success:
                self.stderr.write(f"Failed {item.appointment_id}: {item.error}")

        self.stdout.write(
            self.style.SUCCESS(
                f"Fixed {report.fixed} of {report.attempted} appointments "
                f"({report.failed} failed, {report.total_pending} pending in total)"
            )
        )
