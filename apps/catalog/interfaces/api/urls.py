from django.urls import path

from .views import (
    ProductBrandsAPI,
    ProductCategoriesAPI,
    ProductDetailAPI,
    ProductListCreateAPI,
    ProductReviewAPI,
)

urlpatterns = [
    path("products/", ProductListCreateAPI.as_view(), name="api_products"),
    path("products/meta/categories/", ProductCategoriesAPI.as_view(), name="api_product_categories"),
    path("products/meta/brands/", ProductBrandsAPI.as_view(), name="api_product_brands"),
    path("products/<int:product_id>/", ProductDetailAPI.as_view(), name="api_product_detail"),
    path("products/<int:product_id>/reviews/", ProductReviewAPI.as_view(), name="api_product_reviews"),
]
