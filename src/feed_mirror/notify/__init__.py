from feed_mirror.notify.dispatcher import NotificationDispatcher
from feed_mirror.notify.email import MailChannelsProvider, ResendProvider, build_provider

__all__ = ["MailChannelsProvider", "NotificationDispatcher", "ResendProvider", "build_provider"]
