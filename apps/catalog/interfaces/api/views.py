from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from apps.accounts.interfaces.api.permissions import IsSellerOrAdmin
from apps.catalog.domain.errors import CatalogDomainError
from apps.catalog.services.product_service import ProductService
from storefront.api_errors import domain_failure, success
from storefront.pagination import paginate

from .serializers import (
    ProductCreateSerializer,
    ProductQuerySerializer,
    ProductReviewSerializer,
    ProductSerializer,
    ProductUpdateSerializer,
    ReviewCreateSerializer,
)


class ProductListCreateAPI(APIView):
    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]
        return [IsAuthenticated(), IsSellerOrAdmin()]

    def get_authenticators(self):
        if self.request.method == "GET":
            return []
        return super().get_authenticators()

    def get(self, request):
        query = ProductQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = dict(query.validated_data)
        page = params.pop("page", 1)
        limit = params.pop("limit", 20)

        result = paginate(ProductService.search(**params), page=page, limit=limit)
        return success(**result.meta(), products=ProductSerializer(result.items, many=True).data)

    def post(self, request):
        serializer = ProductCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            product = ProductService.create_product(seller=request.user, **serializer.validated_data)
        except CatalogDomainError as exc:
            return domain_failure(exc)
        return success(
            message="Product created successfully",
            product=ProductSerializer(product).data,
            http_status=status.HTTP_201_CREATED,
        )


class ProductDetailAPI(APIView):
    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]
        return [IsAuthenticated(), IsSellerOrAdmin()]

    def get_authenticators(self):
        if self.request.method == "GET":
            return []
        return super().get_authenticators()

    def get(self, request, product_id: int):
        try:
            product = ProductService.get_active(product_id)
        except CatalogDomainError as exc:
            return domain_failure(exc)
        reviews = product.reviews.select_related("user")
        return success(
            product=ProductSerializer(product).data,
            reviews=ProductReviewSerializer(reviews, many=True).data,
        )

    def put(self, request, product_id: int):
        serializer = ProductUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            product = ProductService.get_for_management(product_id=product_id, actor=request.user)
            product = ProductService.update_product(product=product, **serializer.validated_data)
        except CatalogDomainError as exc:
            return domain_failure(exc)
        return success(message="Product updated successfully", product=ProductSerializer(product).data)

    def delete(self, request, product_id: int):
        try:
            product = ProductService.get_for_management(product_id=product_id, actor=request.user)
        except CatalogDomainError as exc:
            return domain_failure(exc)
        ProductService.deactivate(product=product)
        return success(message="Product deleted successfully")


class ProductReviewAPI(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, product_id: int):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            review, _created = ProductService.add_review(
                product_id=product_id, user=request.user, **serializer.validated_data
            )
        except CatalogDomainError as exc:
            return domain_failure(exc)
        return success(
            message="Review added successfully",
            review=ProductReviewSerializer(review).data,
            http_status=status.HTTP_201_CREATED,
        )


class ProductCategoriesAPI(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return success(categories=ProductService.categories())


class ProductBrandsAPI(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return success(brands=ProductService.brands())
