from courseplan.discussion.subscriptions import ensure_subscribed, is_subscribed

__all__ = ["ensure_subscribed", "is_subscribed"]
