"""
Validation forms for console, comment and account input.

Forms are bound to plain dicts (decoded JSON or ``request.POST``).
"""
from django import forms
from django.contrib.auth import get_user_model

from .conf import blog_settings
from .models import NavItem, Post, Profile, SiteSettings, Tag


class PostForm(forms.ModelForm):
    title = forms.CharField(max_length=blog_settings.TITLE_MAX_LENGTH)
    slug = forms.RegexField(
        regex=r"^[a-z0-9-]+$",
        max_length=blog_settings.SLUG_MAX_LENGTH,
        error_messages={"invalid": "Slug may only contain lowercase letters, numbers and hyphens"},
    )
    tag_ids = forms.ModelMultipleChoiceField(queryset=Tag.objects.all(), required=False)

    class Meta:
        model = Post
        fields = ["title", "slug", "content", "published", "post_type", "published_at"]


class TagForm(forms.Form):
    name = forms.CharField(max_length=blog_settings.TAG_NAME_MAX_LENGTH)


class CommentForm(forms.Form):
    """
    Comment submission.

    Guest fields are required only for anonymous visitors.
    """

    content = forms.CharField(max_length=blog_settings.COMMENT_MAX_LENGTH)
    guest_name = forms.CharField(max_length=blog_settings.GUEST_NAME_MAX_LENGTH, required=False)
    guest_email = forms.EmailField(required=False)
    guest_website = forms.URLField(max_length=blog_settings.GUEST_WEBSITE_MAX_LENGTH, required=False)
    parent_id = forms.UUIDField(required=False)

    def __init__(self, *args, guest=True, **kwargs):
        super().__init__(*args, **kwargs)
        if guest:
            self.fields["guest_name"].required = True
            self.fields["guest_email"].required = True


class NavItemForm(forms.ModelForm):
    sort_order = forms.IntegerField(required=False)

    class Meta:
        model = NavItem
        fields = ["label", "url", "open_in_new_tab", "sort_order"]

    def clean_sort_order(self):
        return self.cleaned_data["sort_order"] or 0


class SettingsForm(forms.ModelForm):
    """Non-secret site settings; credentials are handled separately."""

    site_title = forms.CharField(max_length=blog_settings.SITE_TITLE_MAX_LENGTH, required=False)
    site_description = forms.CharField(
        max_length=blog_settings.SITE_DESCRIPTION_MAX_LENGTH,
        required=False,
    )

    class Meta:
        model = SiteSettings
        exclude = ["id", *SiteSettings.SECRET_FIELDS]

    def clean_site_title(self):
        return self.cleaned_data["site_title"] or SiteSettings._meta.get_field("site_title").default


class UserForm(forms.Form):
    name = forms.CharField(max_length=150, required=False)
    image = forms.URLField(max_length=1000, required=False)
    bio = forms.CharField(required=False)
    website = forms.URLField(max_length=200, required=False)
    role = forms.ChoiceField(choices=Profile.ROLE_CHOICES, required=False)


class SignUpForm(forms.Form):
    name = forms.CharField(max_length=150)
    email = forms.EmailField()
    password = forms.CharField(min_length=8, max_length=128, strip=False)

    def clean_email(self):
        email = self.cleaned_data["email"].strip().lower()
        if get_user_model().objects.filter(username=email).exists():
            raise forms.ValidationError("An account with this email already exists")
        return email


class SignInForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(strip=False)

    def clean_email(self):
        return self.cleaned_data["email"].strip().lower()
