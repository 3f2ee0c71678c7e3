from rest_framework import viewsets
from .models import Category, ClaimLocation, PaymentMethod, Department, Ministry, Cluster
from .serializers import (
    CategorySerializer,
    ClaimLocationSerializer,
    PaymentMethodSerializer,
    DepartmentSerializer,
    MinistrySerializer,
    ClusterSerializer,
)
from apps.accounts.permissions import IsEventAdminOrReadOnly


class LookupViewSet(viewsets.ModelViewSet):
    """
    Base ViewSet for reference tables.

    Event administrators see and manage every row. Everybody else gets a
    read-only view of active rows (the public registration form reads
    these).
    """

    permission_classes = [IsEventAdminOrReadOnly]
    pagination_class = None

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user

        if not (user.is_authenticated and user.is_event_admin):
            return queryset.filter(active=True)

        active = self.request.query_params.get('active')
        if active is not None:
            queryset = queryset.filter(active=active.lower() in ('1', 'true', 'yes'))
        return queryset


class CategoryViewSet(LookupViewSet):
    """Race categories with their registration fee."""

    queryset = Category.objects.all()
    serializer_class = CategorySerializer


class ClaimLocationViewSet(LookupViewSet):
    """
    Kit claim locations.

    destroy: Deactivate the location (registrations keep their reference)
    """

    queryset = ClaimLocation.objects.all()
    serializer_class = ClaimLocationSerializer

    def perform_destroy(self, instance):
        instance.active = False
        instance.save(update_fields=['active', 'updated_at'])


class PaymentMethodViewSet(LookupViewSet):

    queryset = PaymentMethod.objects.all()
    serializer_class = PaymentMethodSerializer


class DepartmentViewSet(LookupViewSet):

    queryset = Department.objects.all()
    serializer_class = DepartmentSerializer


class MinistryViewSet(LookupViewSet):

    queryset = Ministry.objects.select_related('department')
    serializer_class = MinistrySerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        department_id = self.request.query_params.get('department')
        if department_id:
            queryset = queryset.filter(department_id=department_id)
        return queryset


class ClusterViewSet(LookupViewSet):

    queryset = Cluster.objects.all()
    serializer_class = ClusterSerializer
