from django.urls import path
from .views import create_view, list_view, update_destroy_view

urlpatterns = [
    # POST (schedule)
    path('', create_view, name='reminder-create'),

    # GET (reminders of one identity)
    path('user/<str:identity>/', list_view, name='reminder-list'),

    # GET, PUT, PATCH, DELETE
    path('<int:pk>/', update_destroy_view, name='reminder-detail'),
]
