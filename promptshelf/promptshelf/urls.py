"""
URL configuration for promptshelf project.

JSON API only: public catalog under /api/, blog under /blog/, moderation and
catalog administration under /custom-admin/.
"""
from django.urls import path, include

urlpatterns = [
    path('api/', include('prompts.urls')),
    path('blog/', include('blog.urls')),
    path('custom-admin/', include('custom_admin.urls')),
    path('accounts/', include('accounts.urls')),
]
