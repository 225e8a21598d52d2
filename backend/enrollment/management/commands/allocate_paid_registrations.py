from django.core.management.base import BaseCommand

from enrollment.services import allocator


class Command(BaseCommand):
    help = 'Allocate paid registrations that have no batch yet (backfill after a missed payment hook).'

    def add_arguments(self, parser):
        parser.add_argument('--program', type=int, default=None, help='Only this program id')
        parser.add_argument('--location', type=int, default=None, help='Only this location id')
        parser.add_argument('--limit', type=int, default=None, help='Stop after this many registrations')

    def handle(self, *args, **options):
        allocated = 0
        failed = 0
        results = allocator.allocate_unassigned_paid(
            program_id=options['program'],
            location_id=options['location'],
            limit=options['limit'],
        )
        for registration_id, outcome in results:
            if isinstance(outcome, allocator.BatchAssignment):
                allocated += 1
                self.stdout.write(f'Registration {registration_id} -> batch {outcome.batch_number} ({outcome.current_count}/{outcome.capacity})')
            else:
                failed += 1
                self.stderr.write(f'Error allocating registration {registration_id}: {outcome}')

        self.stdout.write(f'Done. Allocated: {allocated}, failed: {failed}')
