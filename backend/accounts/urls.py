from django.urls import path
from .views import account_detail_view, sync_view

urlpatterns = [
    # POST (get-or-create on sign-in)
    path('auth/sync/', sync_view, name='account-sync'),

    # GET (ledger + level progress)
    path('accounts/<str:identity>/', account_detail_view, name='account-detail'),
]
