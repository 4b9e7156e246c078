from django.contrib import admin

from .models import Product, ProductReview


class ProductReviewInline(admin.TabularInline):
    model = ProductReview
    extra = 0
    readonly_fields = ("user", "rating", "comment", "created_at")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "sku", "name", "price", "stock", "rating_average", "is_active", "seller", "updated_at")
    search_fields = ("sku", "name", "brand")
    list_filter = ("is_active", "category")
    list_select_related = ("seller",)
    inlines = [ProductReviewInline]
