from __future__ import annotations

from django.core.management.base import BaseCommand

from apps.notifications.models import OutboundEvent
from apps.notifications.tasks import enqueue_outbound_event


class Command(BaseCommand):
    help = "Re-enqueue outbound events that are still pending or previously failed."

    def add_arguments(self, parser):
        parser.add_argument("--limit", type=int, default=100)
        parser.add_argument("--max-attempts", type=int, default=10)

    def handle(self, *args, **options):
        events = (
            OutboundEvent.objects.filter(
                status__in=[OutboundEvent.STATUS_PENDING, OutboundEvent.STATUS_FAILED],
                attempts__lt=options["max_attempts"],
            )
            .order_by("created_at")
            .values_list("id", flat=True)[: options["limit"]]
        )
        count = 0
        for event_id in events:
            enqueue_outbound_event(event_id=event_id)
            count += 1
        self.stdout.write(self.style.SUCCESS(f"Enqueued {count} outbound event(s)."))
