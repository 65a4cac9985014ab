from aycl_api.webhooks.models import Webhook
from aycl_api.webhooks.schemas import WebhookCreate, WebhookList, WebhookRead

__all__ = ["Webhook", "WebhookCreate", "WebhookList", "WebhookRead"]
