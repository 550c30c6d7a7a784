from django.urls import path
from . import views

urlpatterns = [
    path('api/login/', views.firebase_login, name='firebase_login'),
    path('api/logout/', views.logout_view, name='logout'),
    path('api/profile/', views.profile_api, name='profile_api'),
    path('api/profile/update/', views.profile_update, name='profile_update'),
]
