from rest_framework import generics

from .models import Reminder
from .serializers import ReminderSerializer


class ReminderCreateView(generics.CreateAPIView):
    """POST: schedule a reminder for an identity."""
    serializer_class = ReminderSerializer

create_view = ReminderCreateView.as_view()


class ReminderListView(generics.ListAPIView):
    """GET: reminders of an identity, soonest first."""
    serializer_class = ReminderSerializer

    def get_queryset(self):
        return Reminder.objects.filter(
            account__external_id=self.kwargs['identity']
        ).order_by('scheduled_time', 'id')

list_view = ReminderListView.as_view()


class ReminderUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    """GET, PUT, PATCH, DELETE for a single reminder."""
    serializer_class = ReminderSerializer
    queryset = Reminder.objects.all()

    def get_serializer(self, *args, **kwargs):
        # identity is only required when creating
        if self.request.method in ('PUT', 'PATCH'):
            kwargs['partial'] = True
        return super().get_serializer(*args, **kwargs)

update_destroy_view = ReminderUpdateDestroyView.as_view()
