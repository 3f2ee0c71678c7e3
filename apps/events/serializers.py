from rest_framework import serializers
from .models import Category, ClaimLocation, PaymentMethod, Department, Ministry, Cluster


class CategorySerializer(serializers.ModelSerializer):

    class Meta:
        model = Category
        fields = ['id', 'name', 'price', 'description', 'display_order', 'active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_name(self, value):
        # Category names are printed into the pipe-delimited ticket
        if '|' in value:
            raise serializers.ValidationError("Category name cannot contain '|'.")
        return value.strip()


class ClaimLocationSerializer(serializers.ModelSerializer):

    class Meta:
        model = ClaimLocation
        fields = ['id', 'name', 'address', 'active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class PaymentMethodSerializer(serializers.ModelSerializer):

    class Meta:
        model = PaymentMethod
        fields = [
            'id',
            'name',
            'account_number',
            'account_type',
            'qr_image_url',
            'active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class DepartmentSerializer(serializers.ModelSerializer):

    class Meta:
        model = Department
        fields = ['id', 'name', 'active']
        read_only_fields = ['id']


class MinistrySerializer(serializers.ModelSerializer):

    department_name = serializers.CharField(source='department.name', read_only=True, default=None)

    class Meta:
        model = Ministry
        fields = ['id', 'name', 'department', 'department_name', 'active']
        read_only_fields = ['id']


class ClusterSerializer(serializers.ModelSerializer):

    class Meta:
        model = Cluster
        fields = ['id', 'name', 'active']
        read_only_fields = ['id']
