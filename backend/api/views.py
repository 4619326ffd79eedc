from django.db import connection
from rest_framework.response import Response
from rest_framework.views import APIView

from worklog.ai_engine import ScoringOrchestrator


class HealthView(APIView):
    """
    GET: liveness plus scoring pipeline status. The oracle being down is
    reported but does not make the service unhealthy: scoring falls back.
    """

    def get(self, request, *args, **kwargs):
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        return Response({
            'status': 'ok',
            'database': 'ok',
            'scoring': ScoringOrchestrator().health_check(),
        })

health_view = HealthView.as_view()
