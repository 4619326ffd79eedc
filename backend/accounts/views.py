from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.response import Response

from .models import Account
from .serializers import AccountSerializer, AccountSyncSerializer


class AccountSyncView(generics.GenericAPIView):
    """
    POST: get-or-create the account for an external identity.
    Also applies the daily XP reset, so clients call it on every app load.
    """
    serializer_class = AccountSyncSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = serializer.save()
        return Response(AccountSerializer(account).data, status=status.HTTP_200_OK)

sync_view = AccountSyncView.as_view()


class AccountDetailView(generics.RetrieveAPIView):
    """GET: ledger totals and level progress for an identity."""
    serializer_class = AccountSerializer

    def get_object(self):
        return get_object_or_404(Account, external_id=self.kwargs['identity'])

account_detail_view = AccountDetailView.as_view()
