from typing import Any, Dict, List, Optional

from app.config import GRAPH_API_VERSION
from app.models.enums import SocialPlatform
from app.services.http_service_client import HTTPServiceClient, ServiceCallError

INSTAGRAM_METRICS = "reach,likes,comments,saved,shares"
FACEBOOK_METRICS = "post_impressions,post_engaged_users,post_clicks"

class GraphAPIService:
    """Instagram / Facebook publishing over the Graph API for one connected account.

    ``account_id`` is the Instagram business account id or the Facebook page id.
    """

    def __init__(self, access_token: str, account_id: str, client: Optional[HTTPServiceClient] = None):
        self.access_token = access_token
        self.account_id = account_id
        self.client = client or HTTPServiceClient()

    def _call(self, method: str, path: str, json: Optional[dict] = None, params: Optional[dict] = None) -> Dict[str, Any]:
        params = {**(params or {}), "access_token": self.access_token}
        return self.client.call("graph_api", method, f"/{GRAPH_API_VERSION}/{path.lstrip('/')}", json=json, params=params)

    def _id_of(self, out: Dict[str, Any], key: str = "id") -> str:
        value = out.get(key)
        if not value:
            raise ServiceCallError("BAD_RESPONSE", f"Graph API response missing '{key}'", True, out)
        return str(value)

    # Instagram

    def publish_instagram(self, media_urls: List[str], caption: Optional[str]) -> str:
        if len(media_urls) > 1:
            children = [
                self._id_of(self._call("POST", f"{self.account_id}/media",
                                       json={"image_url": url, "is_carousel_item": True}))
                for url in media_urls
            ]
            container = {"media_type": "CAROUSEL", "children": ",".join(children)}
        else:
            container = {"image_url": media_urls[0]}
        if caption:
            container["caption"] = caption

        creation_id = self._id_of(self._call("POST", f"{self.account_id}/media", json=container))
        published = self._call("POST", f"{self.account_id}/media_publish", json={"creation_id": creation_id})
        return self._id_of(published)

    def instagram_metrics(self, media_id: str) -> Dict[str, Any]:
        out = self._call("GET", f"{media_id}/insights", params={"metric": INSTAGRAM_METRICS})
        return _flatten_insights(out)

    # Facebook

    def publish_facebook(self, media_urls: List[str], caption: Optional[str]) -> str:
        if len(media_urls) == 1:
            body = {"url": media_urls[0]}
            if caption:
                body["caption"] = caption
            out = self._call("POST", f"{self.account_id}/photos", json=body)
            return str(out.get("post_id") or self._id_of(out))

        # multi-photo: upload unpublished photos, then attach them to one feed post
        photo_ids = [
            self._id_of(self._call("POST", f"{self.account_id}/photos", json={"url": url, "published": False}))
            for url in media_urls
        ]
        body = {"attached_media": [{"media_fbid": pid} for pid in photo_ids]}
        if caption:
            body["message"] = caption
        return self._id_of(self._call("POST", f"{self.account_id}/feed", json=body))

    def facebook_metrics(self, post_id: str) -> Dict[str, Any]:
        out = self._call("GET", f"{post_id}/insights", params={"metric": FACEBOOK_METRICS})
        return _flatten_insights(out)

    # Dispatch by platform

    def publish(self, platform: SocialPlatform, media_urls: List[str], caption: Optional[str]) -> str:
        if platform == SocialPlatform.INSTAGRAM:
            return self.publish_instagram(media_urls, caption)
        return self.publish_facebook(media_urls, caption)

    def metrics(self, platform: SocialPlatform, platform_post_id: str) -> Dict[str, Any]:
        if platform == SocialPlatform.INSTAGRAM:
            return self.instagram_metrics(platform_post_id)
        return self.facebook_metrics(platform_post_id)

def post_url(platform: SocialPlatform, platform_post_id: str) -> str:
    if platform == SocialPlatform.INSTAGRAM:
        return f"https://www.instagram.com/p/{platform_post_id}/"
    return f"https://www.facebook.com/{platform_post_id}"

def _flatten_insights(out: Dict[str, Any]) -> Dict[str, Any]:
    """{"data": [{"name": "reach", "values": [{"value": 10}]}]} -> {"reach": 10}"""
    metrics = {}
    for item in out.get("data", []):
        values = item.get("values") or []
        if item.get("name") and values:
            metrics[item["name"]] = values[-1].get("value")
    return metrics
