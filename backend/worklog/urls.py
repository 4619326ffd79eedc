from django.urls import path
from .views import (
    batch_delete_view,
    complete_view,
    create_view,
    destroy_view,
    insight_view,
    list_view,
)

urlpatterns = [
    # POST (log a new session)
    path('', create_view, name='tasklog-create'),

    # GET (entries of one identity, ?status= filter)
    path('user/<str:identity>/', list_view, name='tasklog-list'),

    # PUT (pending -> completed, awards points)
    path('<int:pk>/complete/', complete_view, name='tasklog-complete'),

    # DELETE (reverses points of completed entries)
    path('<int:pk>/', destroy_view, name='tasklog-detail'),

    # POST {"ids": [...]}
    path('batch-delete/', batch_delete_view, name='tasklog-batch-delete'),

    # POST {"identity": ...}
    path('insights/generate/', insight_view, name='tasklog-insight'),
]
