from django.urls import path, include
from .views import health_view

urlpatterns = [
    path('v1/', include('accounts.urls')),
    path('v1/logs/', include('worklog.urls')),
    path('v1/reminders/', include('reminders.urls')),
    path('v1/health/', health_view, name='health'),
]
