from .public import blog_list_api, blog_detail_api, blog_category_list_api
from .editors import blog_manage_status, blog_create, blog_edit, blog_delete, blog_quick_status_change
