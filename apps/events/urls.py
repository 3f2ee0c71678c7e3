from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'events'

router = DefaultRouter()
router.register(r'categories', views.CategoryViewSet, basename='category')
router.register(r'claim-locations', views.ClaimLocationViewSet, basename='claim-location')
router.register(r'payment-methods', views.PaymentMethodViewSet, basename='payment-method')
router.register(r'departments', views.DepartmentViewSet, basename='department')
router.register(r'ministries', views.MinistryViewSet, basename='ministry')
router.register(r'clusters', views.ClusterViewSet, basename='cluster')

urlpatterns = [
    # GET    /api/events/categories/           - Active categories (public)
    # POST   /api/events/categories/           - Create category (admin)
    # DELETE /api/events/claim-locations/{id}/ - Deactivate location (admin)
    path('', include(router.urls)),
]
