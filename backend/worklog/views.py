from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.serializers import AccountSerializer
from . import services
from .serializers import (
    BatchDeleteSerializer,
    InsightRequestSerializer,
    TaskLogCreateSerializer,
    TaskLogSerializer,
)


class TaskLogCreateView(generics.CreateAPIView):
    """
    POST: Log a new session. Points are scored synchronously (oracle or
    fallback) and the entry starts as pending.
    """
    serializer_class = TaskLogCreateSerializer

create_view = TaskLogCreateView.as_view()


class TaskLogListView(generics.ListAPIView):
    """
    GET: All entries of an identity, newest first. Optional ?status=pending|completed.
    """
    serializer_class = TaskLogSerializer

    def get_queryset(self):
        return services.list_task_logs(
            self.kwargs['identity'],
            status=self.request.query_params.get('status'),
        )

list_view = TaskLogListView.as_view()


class TaskLogCompleteView(APIView):
    """
    PUT: Mark an entry completed and award its points to the owner.
    A second call fails with 400 instead of crediting twice.
    """

    def put(self, request, pk, *args, **kwargs):
        log, total_points = services.complete_task_log(pk)
        return Response({
            'log': TaskLogSerializer(log).data,
            'userPoints': total_points,
            'account': AccountSerializer(log.account).data,
        })

complete_view = TaskLogCompleteView.as_view()


class TaskLogDestroyView(APIView):
    """
    DELETE: Remove an entry; completed entries give their points back.
    """

    def delete(self, request, pk, *args, **kwargs):
        services.delete_task_log(pk)
        return Response({'msg': 'Log removed'})

destroy_view = TaskLogDestroyView.as_view()


class TaskLogBatchDeleteView(generics.GenericAPIView):
    """
    POST: {"ids": [...]} remove many entries with one ledger update per account.
    """
    serializer_class = BatchDeleteSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        count = services.batch_delete_task_logs(serializer.validated_data['ids'])
        return Response({'msg': 'Logs removed', 'count': count})

batch_delete_view = TaskLogBatchDeleteView.as_view()


class WeeklyInsightView(generics.GenericAPIView):
    """
    POST: {"identity": ...} generate and cache the weekly coach review.
    """
    serializer_class = InsightRequestSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        insight = services.generate_weekly_insight(serializer.validated_data['identity'])
        return Response({'insight': insight}, status=status.HTTP_200_OK)

insight_view = WeeklyInsightView.as_view()
