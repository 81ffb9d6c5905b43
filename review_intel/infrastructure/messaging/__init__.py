from .notifier import (
    Notifier,
    DemoNotifier,
    create_notifier,
    compose_alert_message,
    normalize_phone,
    rating_stars,
)
