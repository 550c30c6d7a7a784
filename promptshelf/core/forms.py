from django import forms

from .exceptions import ValidationFailed


class StringListField(forms.Field):
    """Accepts a list of strings or a comma-separated string."""

    def to_python(self, value):
        if value in self.empty_values:
            return []
        if isinstance(value, str):
            items = value.split(',')
        elif isinstance(value, (list, tuple)):
            items = value
        else:
            raise forms.ValidationError('Enter a list of values.')
        return [str(item).strip() for item in items if str(item).strip()]

    def validate(self, value):
        if self.required and not value:
            raise forms.ValidationError(self.error_messages['required'], code='required')


class PromptForm(forms.Form):
    title = forms.CharField(max_length=200)
    description = forms.CharField(max_length=1000, required=False)
    category = forms.CharField(max_length=100)
    full_prompt = forms.CharField()
    tags = StringListField(required=False)
    images = StringListField(required=False)


class BlogPostForm(forms.Form):
    title = forms.CharField(max_length=200)
    content = forms.CharField()
    excerpt = forms.CharField(max_length=500, required=False)
    category = forms.SlugField(max_length=100)
    tags = StringListField(required=False)
    featured_image = forms.URLField(required=False, assume_scheme='https')
    meta_title = forms.CharField(max_length=200, required=False)
    meta_description = forms.CharField(max_length=300, required=False)
    keywords = StringListField(required=False)


class CategoryForm(forms.Form):
    name = forms.CharField(max_length=100)
    description = forms.CharField(max_length=500, required=False)
    is_active = forms.BooleanField(required=False)


class BlogCategoryForm(forms.Form):
    name = forms.CharField(max_length=100)
    description = forms.CharField(max_length=500, required=False)
    color = forms.RegexField(regex=r'^#[0-9a-fA-F]{6}$', required=False)


class UserProfileForm(forms.Form):
    display_name = forms.CharField(max_length=100, required=False)
    bio = forms.CharField(max_length=1000, required=False)
    avatar = forms.URLField(required=False, assume_scheme='https')
    social_media = forms.JSONField(required=False)


def validate(form_class, data, only=None):
    """
    Run `data` through `form_class` and return the cleaned values.

    With `only`, the whole of `data` is validated (so a partial update is
    checked against the merged document) but only those keys are returned.
    """
    form = form_class(data=data)
    if not form.is_valid():
        errors = {field: [str(message) for message in messages] for field, messages in form.errors.items()}
        raise ValidationFailed(errors)
    cleaned = form.cleaned_data
    if only is not None:
        return {key: cleaned[key] for key in only if key in cleaned}
    return cleaned
