from sqladmin import ModelView

from opsdesk.activity.models import ActivityLog
from opsdesk.profile.models import Profile


class ProfileAdmin(ModelView, model=Profile):
    name = "Profile"
    name_plural = "Profiles"
    icon = "fa-solid fa-user-check"

    column_list = [
        Profile.email,
        Profile.full_name,
        Profile.role,
        Profile.status,
        Profile.last_active,
        Profile.created_at,
        Profile.id,
    ]
    column_searchable_list = [
        Profile.email,
        Profile.first_name,
        Profile.last_name,
        Profile.full_name,
    ]
    column_sortable_list = [
        Profile.email,
        Profile.status,
        Profile.role,
        Profile.last_active,
        Profile.created_at,
    ]
    column_default_sort = [(Profile.created_at, True)]
    # Profiles are created by sign-in, never by hand.
    can_create = False
    form_excluded_columns = [Profile.created_at, Profile.updated_at]


class ActivityLogAdmin(ModelView, model=ActivityLog):
    name = "Activity log"
    name_plural = "Activity logs"
    icon = "fa-solid fa-list"

    column_list = [
        ActivityLog.created_at,
        ActivityLog.action,
        ActivityLog.details,
        ActivityLog.user_email,
        ActivityLog.user_full_name,
    ]
    column_searchable_list = [ActivityLog.action, ActivityLog.user_email]
    column_sortable_list = [ActivityLog.created_at, ActivityLog.action]
    column_default_sort = [(ActivityLog.created_at, True)]
    can_create = False
    can_edit = False
    can_delete = False
