from django.urls import path
from . import views

urlpatterns = [
    path('api/posts/', views.blog_list_api, name='blog_list_api'),
    path('api/categories/', views.blog_category_list_api, name='blog_category_list_api'),
    path('api/manage/', views.blog_manage_status, name='blog_manage_status'),
    path('api/manage/create/', views.blog_create, name='blog_create'),
    path('api/manage/<str:post_id>/edit/', views.blog_edit, name='blog_edit'),
    path('api/manage/<str:post_id>/delete/', views.blog_delete, name='blog_delete'),
    path('api/manage/<str:post_id>/status/', views.blog_quick_status_change, name='blog_quick_status_change'),
    path('api/posts/<str:slug>/', views.blog_detail_api, name='blog_detail_api'),
]
