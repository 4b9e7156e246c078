from __future__ import annotations

from rest_framework import serializers

from apps.catalog.models import Product, ProductReview


class ProductSerializer(serializers.ModelSerializer):
    stock_status = serializers.CharField(read_only=True)
    seller_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "brand",
            "category",
            "price",
            "original_price",
            "discount_percentage",
            "stock",
            "stock_status",
            "rating_average",
            "rating_count",
            "is_active",
            "seller_id",
            "created_at",
            "updated_at",
        ]


class ProductQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)
    category = serializers.CharField(required=False, allow_blank=True)
    brand = serializers.CharField(required=False, allow_blank=True)
    min_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    max_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    in_stock = serializers.BooleanField(required=False, default=False)
    search = serializers.CharField(required=False, allow_blank=True)
    sort = serializers.ChoiceField(choices=["price_asc", "price_desc", "newest"], required=False)


class ProductCreateSerializer(serializers.Serializer):
    sku = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")
    brand = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    category = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    original_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    discount_percentage = serializers.IntegerField(min_value=0, max_value=100, required=False, default=0)
    low_stock_threshold = serializers.IntegerField(min_value=0, required=False, default=10)
    stock = serializers.IntegerField(min_value=0, default=0)


class ProductUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(max_length=2000, required=False, allow_blank=True)
    brand = serializers.CharField(max_length=100, required=False, allow_blank=True)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    original_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    discount_percentage = serializers.IntegerField(min_value=0, max_value=100, required=False)
    low_stock_threshold = serializers.IntegerField(min_value=0, required=False)
    is_active = serializers.BooleanField(required=False)
    stock = serializers.IntegerField(min_value=0, required=False)


class ProductReviewSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    user_name = serializers.SerializerMethodField()

    class Meta:
        model = ProductReview
        fields = ["id", "user_id", "user_name", "rating", "comment", "created_at", "updated_at"]

    def get_user_name(self, obj) -> str:
        return obj.user.get_full_name() or obj.user.get_username()


class ReviewCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(
        min_value=1,
        max_value=5,
        error_messages={
            "min_value": "Rating must be between 1 and 5",
            "max_value": "Rating must be between 1 and 5",
        },
    )
    comment = serializers.CharField(
        min_length=10,
        max_length=500,
        error_messages={
            "min_length": "Comment must be between 10 and 500 characters",
            "max_length": "Comment must be between 10 and 500 characters",
        },
    )
