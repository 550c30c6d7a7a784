from django.urls import path
from . import views

urlpatterns = [
    path('prompts/', views.prompt_list_api, name='prompt_list_api'),
    path('prompts/submit/', views.prompt_submit, name='prompt_submit'),
    path('prompts/mine/', views.my_prompts_api, name='my_prompts_api'),
    path('prompts/<str:prompt_id>/vote/', views.prompt_vote, name='prompt_vote'),
    path('prompts/<str:slug>/', views.prompt_detail_api, name='prompt_detail_api'),
    path('categories/', views.category_list_api, name='category_list_api'),
]
