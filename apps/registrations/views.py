from rest_framework import viewsets, status, serializers as drf_serializers
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import MultiPartParser, FormParser
from django.http import HttpResponse
from django.db.models import Q
from drf_spectacular.utils import extend_schema
import base64

from .models import Registration
from .serializers import (
    RegistrationSerializer,
    RegistrationListSerializer,
    RegistrationCreateSerializer,
    PublicRegistrationSerializer,
    RegistrationFilterSerializer,
    PaymentStatusInputSerializer,
    PaymentUpdateResultSerializer,
    PaymentHistorySerializer,
    PaymentReceiptSerializer,
    KitClaimInputSerializer,
    TicketScanInputSerializer,
    TicketClaimInputSerializer,
    TicketLookupSerializer,
    TicketPayloadSerializer,
    BulkClaimInputSerializer,
    RegistrationSummarySerializer,
    KitStatsSerializer,
    BatchPaymentStatusInputSerializer,
    BatchPaymentResultSerializer,
    BulkUploadInputSerializer,
    BulkUploadResultSerializer,
    UploadRowErrorSerializer,
    ReportExportInputSerializer,
)
from apps.accounts.permissions import IsEventAdmin, CanDistributeKits
from apps.registrations.services import (
    register_participant,
    update_payment_status,
    batch_update_payment_status,
    get_payment_history,
    get_receipt,
    ticket_for_registration,
    generate_ticket_qr_png,
    lookup_registration,
    claim_kit,
    claim_kit_from_ticket,
    unclaim_kit,
    bulk_claim_kits,
    get_kit_distribution_stats,
    get_registration_summary,
    parse_registration_file,
    import_registrations,
    write_upload_template,
    export_report,
    # Exceptions
    InvalidTicketFormatError,
    RegistrationNotFoundError,
    TicketMismatchError,
    InvalidPaymentStatusError,
    PaymentUpdateFailedError,
    CategoryNotFoundError,
    ClaimLocationNotFoundError,
    KitAlreadyClaimedError,
    KitNotClaimedError,
    PaymentNotConfirmedError,
    BulkClaimError,
    BulkUploadError,
    ReportError,
)


# Response serializers for API documentation
class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


class TicketMismatchResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()
    mismatches = drf_serializers.ListField(child=drf_serializers.CharField())


class BulkClaimResponseSerializer(drf_serializers.Serializer):
    claimed = drf_serializers.IntegerField()
    message = drf_serializers.CharField()


class BulkClaimErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()
    completed = drf_serializers.IntegerField()
    registration_id = drf_serializers.UUIDField()


class BulkUploadErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()
    errors = UploadRowErrorSerializer(many=True)


# Claim desk failures that are a conflict with the current record
KIT_CONFLICT_ERRORS = (
    KitAlreadyClaimedError,
    KitNotClaimedError,
    PaymentNotConfirmedError,
)


class RegistrationPagination(PageNumberPagination):
    """Custom pagination for registrations."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class RegistrationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for registrations.

    Participants only create; everything else is staff work and goes
    through the services layer.

    create: Register a participant (public)
    list: Filterable registration list (admin)
    retrieve: Full registration record (admin)
    """

    queryset = Registration.objects.select_related(
        'payment_method',
        'payment_confirmed_by',
        'processed_by',
        'claim_location',
        'receipt',
    )
    serializer_class = RegistrationSerializer
    pagination_class = RegistrationPagination
    lookup_value_regex = '[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}'

    def get_permissions(self):
        """Set permissions based on action."""
        if self.action == 'create':
            return [AllowAny()]
        if self.action in ['claim_kit', 'unclaim_kit']:
            return [IsAuthenticated(), CanDistributeKits()]
        return [IsAuthenticated(), IsEventAdmin()]

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return RegistrationListSerializer
        elif self.action == 'create':
            return RegistrationCreateSerializer
        return RegistrationSerializer

    def get_queryset(self):
        """Filter registrations using input serializer validation."""
        queryset = super().get_queryset()
        if self.action != 'list':
            return queryset

        filter_serializer = RegistrationFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if params.get('payment_status'):
            queryset = queryset.filter(payment_status=params['payment_status'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('category'):
            queryset = queryset.filter(category__iexact=params['category'])
        if params.get('kit_claimed') is not None:
            queryset = queryset.filter(kit_claimed=params['kit_claimed'])

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(registration_id__icontains=search) |
                Q(first_name__icontains=search) |
                Q(last_name__icontains=search) |
                Q(email__icontains=search)
            )

        return queryset

    @extend_schema(
        request=RegistrationCreateSerializer,
        responses={201: PublicRegistrationSerializer, 400: ErrorResponseSerializer},
        description="Register a participant. The ticket QR code is e-mailed.",
    )
    def create(self, request, *args, **kwargs):
        """Register a participant."""
        serializer = RegistrationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            registration = register_participant(**serializer.validated_data)
        except CategoryNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            PublicRegistrationSerializer(registration).data,
            status=status.HTTP_201_CREATED
        )

    @extend_schema(
        request=PaymentStatusInputSerializer,
        responses={
            200: PaymentUpdateResultSerializer,
            400: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            500: ErrorResponseSerializer,
        },
        description="Change the payment status. Confirming issues the receipt.",
    )
    @action(detail=True, methods=['post'])
    def payment_status(self, request, pk=None):
        """
        Update payment status.

        POST /api/registrations/{id}/payment_status/
        Body: {"status": "confirmed", "notes": "optional"}
        """
        serializer = PaymentStatusInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = update_payment_status(
                registration_id=pk,
                new_status=serializer.validated_data['status'],
                notes=serializer.validated_data['notes'],
                actor=request.user,
                send_email=serializer.validated_data['send_email'],
            )
        except InvalidPaymentStatusError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except RegistrationNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except PaymentUpdateFailedError as e:
            return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(PaymentUpdateResultSerializer(result).data)

    @extend_schema(responses={200: PaymentHistorySerializer(many=True)})
    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        """
        Payment status history, newest first.

        GET /api/registrations/{id}/history/
        """
        registration = self.get_object()
        serializer = PaymentHistorySerializer(get_payment_history(registration), many=True)
        return Response(serializer.data)

    @extend_schema(responses={200: PaymentReceiptSerializer, 404: ErrorResponseSerializer})
    @action(detail=True, methods=['get'])
    def receipt(self, request, pk=None):
        """
        Receipt of a confirmed registration.

        GET /api/registrations/{id}/receipt/
        """
        registration = self.get_object()
        receipt = get_receipt(registration)
        if receipt is None:
            return Response(
                {'error': 'No receipt has been issued for this registration'},
                status=status.HTTP_404_NOT_FOUND
            )
        return Response(PaymentReceiptSerializer(receipt).data)

    @extend_schema(responses={200: TicketPayloadSerializer})
    @action(detail=True, methods=['get'])
    def ticket(self, request, pk=None):
        """
        Ticket payload and QR image (base64 PNG) for reprinting.

        GET /api/registrations/{id}/ticket/
        """
        registration = self.get_object()
        payload = ticket_for_registration(registration)
        return Response({
            'qr_data': payload,
            'qr_image': base64.b64encode(generate_ticket_qr_png(payload)).decode('ascii'),
        })

    @extend_schema(
        request=KitClaimInputSerializer,
        responses={
            200: RegistrationSerializer,
            400: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            409: ErrorResponseSerializer,
        },
    )
    @action(detail=True, methods=['post'])
    def claim_kit(self, request, pk=None):
        """
        Hand out the race kit.

        POST /api/registrations/{id}/claim_kit/
        Body: {"actual_claimer": "optional", "claim_location": 1, "notes": "optional"}
        """
        serializer = KitClaimInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            registration = claim_kit(
                registration_id=pk,
                actor=request.user,
                actual_claimer=serializer.validated_data['actual_claimer'],
                claim_location_id=serializer.validated_data['claim_location'],
                notes=serializer.validated_data['notes'],
            )
        except RegistrationNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ClaimLocationNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except KIT_CONFLICT_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

        return Response(RegistrationSerializer(registration).data)

    @extend_schema(
        request=None,
        responses={200: RegistrationSerializer, 404: ErrorResponseSerializer, 409: ErrorResponseSerializer},
    )
    @action(detail=True, methods=['post'])
    def unclaim_kit(self, request, pk=None):
        """
        Undo a kit claim.

        POST /api/registrations/{id}/unclaim_kit/
        """
        try:
            registration = unclaim_kit(registration_id=pk, actor=request.user)
        except RegistrationNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except KitNotClaimedError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

        return Response(RegistrationSerializer(registration).data)

    @extend_schema(responses={200: RegistrationSummarySerializer})
    @action(detail=False, methods=['get'])
    def summary(self, request):
        """
        Dashboard counts.

        GET /api/registrations/summary/
        """
        return Response(RegistrationSummarySerializer(get_registration_summary()).data)

    @extend_schema(
        request=BatchPaymentStatusInputSerializer,
        responses={200: BatchPaymentResultSerializer, 400: ErrorResponseSerializer},
        description="Apply one payment status to many registrations. Failures are reported per item.",
    )
    @action(detail=False, methods=['post'])
    def batch_payment_status(self, request):
        """
        Batch payment verification.

        POST /api/registrations/batch_payment_status/
        Body: {"registration_ids": [...], "status": "confirmed", "notes": "optional"}
        """
        serializer = BatchPaymentStatusInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            summary = batch_update_payment_status(
                registration_ids=serializer.validated_data['registration_ids'],
                new_status=serializer.validated_data['status'],
                notes=serializer.validated_data['notes'],
                actor=request.user,
                send_email=serializer.validated_data['send_email'],
            )
        except InvalidPaymentStatusError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(BatchPaymentResultSerializer(summary).data)

    @extend_schema(
        request={'multipart/form-data': BulkUploadInputSerializer},
        responses={200: BulkUploadResultSerializer, 400: BulkUploadErrorResponseSerializer},
        description="Import registrations from a CSV or .xlsx sheet. Any invalid row rejects the whole file.",
    )
    @action(detail=False, methods=['post'], parser_classes=[MultiPartParser, FormParser])
    def bulk_upload(self, request):
        """
        Bulk registration upload.

        POST /api/registrations/bulk_upload/ (multipart, field "file")
        """
        serializer = BulkUploadInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            rows = parse_registration_file(serializer.validated_data['file'])
            summary = import_registrations(
                rows=rows,
                actor=request.user,
                send_emails=serializer.validated_data['send_emails'],
            )
        except BulkUploadError as e:
            return Response(
                {'error': str(e), 'errors': e.errors},
                status=status.HTTP_400_BAD_REQUEST
            )

        return Response(BulkUploadResultSerializer(summary).data)

    @extend_schema(responses={(200, 'text/csv'): str})
    @action(detail=False, methods=['get'])
    def upload_template(self, request):
        """
        CSV template for bulk upload.

        GET /api/registrations/upload_template/
        """
        response = HttpResponse(content_type='text/csv')
        response['Content-Disposition'] = 'attachment; filename="famrun_registration_template.csv"'
        write_upload_template(response)
        return response


# =============================================================================
# Claim desk
# =============================================================================

@extend_schema(
    request=TicketScanInputSerializer,
    responses={
        200: TicketLookupSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Resolve a scanned ticket. Reports ticket fields that differ from the record.",
    tags=['kits'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, CanDistributeKits])
def kit_lookup(request):
    """Look up a registration by scanned QR payload."""
    serializer = TicketScanInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        lookup = lookup_registration(serializer.validated_data['qr_data'])
    except InvalidTicketFormatError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except RegistrationNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(TicketLookupSerializer(lookup).data)


@extend_schema(
    request=TicketClaimInputSerializer,
    responses={
        200: RegistrationSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: TicketMismatchResponseSerializer,
    },
    description="Claim a kit from a scanned ticket.",
    tags=['kits'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, CanDistributeKits])
def kit_claim(request):
    """Claim a kit by scanned QR payload."""
    serializer = TicketClaimInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        registration = claim_kit_from_ticket(
            payload=serializer.validated_data['qr_data'],
            actor=request.user,
            actual_claimer=serializer.validated_data['actual_claimer'],
            claim_location_id=serializer.validated_data['claim_location'],
            notes=serializer.validated_data['notes'],
        )
    except (InvalidTicketFormatError, ClaimLocationNotFoundError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except RegistrationNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except TicketMismatchError as e:
        return Response(
            {'error': str(e), 'mismatches': e.mismatches},
            status=status.HTTP_409_CONFLICT
        )
    except KIT_CONFLICT_ERRORS as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

    return Response(RegistrationSerializer(registration).data)


@extend_schema(
    request=BulkClaimInputSerializer,
    responses={
        200: BulkClaimResponseSerializer,
        400: ErrorResponseSerializer,
        409: BulkClaimErrorResponseSerializer,
    },
    description="Claim many kits at once. Stops at the first failure; earlier claims stand.",
    tags=['kits'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, CanDistributeKits])
def kit_bulk_claim(request):
    """Bulk claim kits."""
    serializer = BulkClaimInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        claimed = bulk_claim_kits(
            registration_ids=serializer.validated_data['registration_ids'],
            actor=request.user,
            claim_location_id=serializer.validated_data['claim_location'],
            notes=serializer.validated_data['notes'],
        )
    except ClaimLocationNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except BulkClaimError as e:
        return Response({
            'error': str(e),
            'completed': e.completed,
            'registration_id': str(e.registration_id),
        }, status=status.HTTP_409_CONFLICT)

    return Response({
        'claimed': claimed,
        'message': f'Successfully claimed {claimed} kits',
    })


@extend_schema(
    responses={200: KitStatsSerializer},
    description="Kit distribution totals.",
    tags=['kits'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, CanDistributeKits])
def kit_stats(request):
    """Kit distribution totals."""
    return Response(KitStatsSerializer(get_kit_distribution_stats()).data)


# =============================================================================
# Reports
# =============================================================================

@extend_schema(
    parameters=[ReportExportInputSerializer],
    responses={(200, 'application/octet-stream'): bytes, 400: ErrorResponseSerializer},
    description="Download a registration report as .xlsx or .csv.",
    tags=['reports'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsEventAdmin])
def report_export(request):
    """Export a registration report."""
    serializer = ReportExportInputSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)

    try:
        report = export_report(
            report_type=serializer.validated_data['report'],
            status=serializer.validated_data['status'],
            file_format=serializer.validated_data['file_format'],
        )
    except ReportError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    response = HttpResponse(report['content'], content_type=report['content_type'])
    response['Content-Disposition'] = f'attachment; filename="{report["filename"]}"'
    return response
