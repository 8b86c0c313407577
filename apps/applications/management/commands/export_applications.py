# apps/applications/management/commands/export_applications.py
import csv

from django.core.management.base import BaseCommand, CommandError

from apps.applications.models import Application

HEADERS = [
    'id', 'student_id', 'student_email', 'first_name', 'last_name', 'email',
    'phone', 'date_of_birth', 'previous_education', 'desired_course_id',
    'desired_course', 'status', 'created_at',
]


class Command(BaseCommand):
    help = 'Export applications as CSV (newest first)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--status',
            choices=[choice for choice, _ in Application.STATUS_CHOICES],
            help='Only export applications with this status',
        )
        parser.add_argument(
            '--output',
            help='File to write to (defaults to stdout)',
        )

    def handle(self, *args, **options):
        applications = Application.objects.select_related('student', 'desired_course').order_by('-created_at', '-id')
        if options['status']:
            applications = applications.filter(status=options['status'])

        if options['output']:
            try:
                handle = open(options['output'], 'w', newline='', encoding='utf-8')
            except OSError as e:
                raise CommandError(f'Cannot open {options["output"]}: {e}')
        else:
            handle = self.stdout

        try:
            writer = csv.writer(handle, lineterminator='\n')
            writer.writerow(HEADERS)

            count = 0
            for application in applications.iterator():
                writer.writerow([
                    application.pk,
                    application.student_id,
                    application.student.email,
                    application.first_name,
                    application.last_name,
                    application.email,
                    application.phone,
                    application.date_of_birth.isoformat(),
                    application.previous_education,
                    application.desired_course_id,
                    application.desired_course.title,
                    application.status,
                    application.created_at.isoformat(),
                ])
                count += 1
        finally:
            if handle is not self.stdout:
                handle.close()

        self.stderr.write(self.style.SUCCESS(f'Exported {count} application(s)'))
