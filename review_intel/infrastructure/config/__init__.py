from .settings import (
    Settings,
    StoreSettings,
    NotifierSettings,
    SpamSettings,
    ApiSettings,
    get_settings,
)
