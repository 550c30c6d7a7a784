from django.urls import path
from . import views

urlpatterns = [
    path('api/stats/', views.admin_stats, name='admin_stats'),
    path('api/category-totals/', views.admin_category_totals, name='admin_category_totals'),
    path('api/prompts/', views.admin_prompt_list, name='admin_prompt_list'),
    path('api/prompts/pending/', views.admin_pending_prompts, name='admin_pending_prompts'),
    path('api/prompts/bulk/', views.admin_bulk_create_prompts, name='admin_bulk_create_prompts'),
    path('api/prompts/<str:prompt_id>/moderate/', views.admin_moderate_prompt, name='admin_moderate_prompt'),
    path('api/prompts/<str:prompt_id>/edit/', views.admin_prompt_edit, name='admin_prompt_edit'),
    path('api/prompts/<str:prompt_id>/delete/', views.admin_prompt_delete, name='admin_prompt_delete'),
    path('api/categories/', views.admin_categories, name='admin_categories'),
    path('api/categories/<str:category_id>/edit/', views.admin_category_edit, name='admin_category_edit'),
    path('api/categories/<str:category_id>/toggle/', views.admin_category_toggle, name='admin_category_toggle'),
    path('api/categories/<str:category_id>/delete/', views.admin_category_delete, name='admin_category_delete'),
    path('api/blog-categories/', views.admin_blog_category_create, name='admin_blog_category_create'),
    path('api/blog-categories/<str:category_id>/edit/', views.admin_blog_category_edit, name='admin_blog_category_edit'),
    path('api/blog-categories/<str:category_id>/delete/', views.admin_blog_category_delete, name='admin_blog_category_delete'),
    path('api/users/', views.admin_user_list, name='admin_user_list'),
    path('api/users/<str:user_id>/role/', views.admin_user_role, name='admin_user_role'),
    path('api/reconcile-counts/', views.admin_reconcile_counts, name='admin_reconcile_counts'),
]
