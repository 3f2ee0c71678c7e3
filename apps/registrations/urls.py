from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'registrations'

router = DefaultRouter()
router.register(r'registrations', views.RegistrationViewSet, basename='registration')

urlpatterns = [
    # Registration ViewSet routes
    # POST   /api/registrations/                    - Register (public)
    # GET    /api/registrations/                    - List registrations (admin)
    # GET    /api/registrations/{id}/               - Registration details (admin)
    # GET    /api/registrations/summary/            - Dashboard counts (admin)
    # POST   /api/registrations/batch_payment_status/ - Batch payment verification (admin)
    # POST   /api/registrations/bulk_upload/        - Import a CSV/.xlsx sheet (admin)
    # GET    /api/registrations/upload_template/    - CSV upload template (admin)

    # Payment actions (admin)
    # POST   /api/registrations/{id}/payment_status/ - Change payment status
    # GET    /api/registrations/{id}/history/        - Payment history
    # GET    /api/registrations/{id}/receipt/        - Payment receipt
    # GET    /api/registrations/{id}/ticket/         - Ticket payload and QR image

    # Kit actions (kit distributors)
    # POST   /api/registrations/{id}/claim_kit/      - Claim kit
    # POST   /api/registrations/{id}/unclaim_kit/    - Undo kit claim

    # Claim desk
    path('kits/lookup/', views.kit_lookup, name='kit-lookup'),
    path('kits/claim/', views.kit_claim, name='kit-claim'),
    path('kits/bulk_claim/', views.kit_bulk_claim, name='kit-bulk-claim'),
    path('kits/stats/', views.kit_stats, name='kit-stats'),

    # Reports (admin)
    path('reports/export/', views.report_export, name='report-export'),

    # Include router URLs
    path('', include(router.urls)),
]
