"""Slack channel adapter using Socket Mode."""

import logging
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import httpx
from slack_sdk.socket_mode.aiohttp import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse
from slack_sdk.web.async_client import AsyncWebClient

from chatbridge.channels.errors import ChannelConnectionError
from chatbridge.channels.models import ChannelType, InboundMessage, RegisteredGroup, make_jid
from chatbridge.channels.protocol import (
    Channel,
    OnChatMetadata,
    OnChatName,
    OnInboundMessage,
    RegisteredGroupsLookup,
)

logger = logging.getLogger(__name__)

JID_PREFIX = f"{ChannelType.SLACK.value}:"

_UNSAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9._-]")


def slack_ts_to_iso(ts: str) -> str:
    """Render the whole-second part of a Slack ``ts`` as ISO-8601 UTC.

    Example:
        >>> slack_ts_to_iso("1700000000.123456")
        '2023-11-14T22:13:20.000Z'
    """
    seconds = int(ts.split(".")[0])
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def safe_filename(name: str) -> str:
    """Replace anything outside ``[a-zA-Z0-9._-]`` with ``_``."""
    return _UNSAFE_FILENAME_RE.sub("_", name)


class SlackChannel(Channel):
    """Slack adapter over Socket Mode.

    Socket Mode keeps a WebSocket open to Slack, so the bridge works behind
    firewalls without a public URL.

    Inbound events are reported as chat metadata for every conversation the
    bot can see; full messages are delivered only for JIDs present in the
    caller's registered groups.
    """

    def __init__(
        self,
        on_message: OnInboundMessage,
        on_chat_metadata: OnChatMetadata,
        registered_groups: RegisteredGroupsLookup,
        bot_token: str,
        app_token: str,
        assistant_name: str = "Andy",
        groups_dir: Path | str = "groups",
        on_chat_name: Optional[OnChatName] = None,
        sync_on_connect: bool = True,
        sync_limit: int = 200,
        download_files: bool = True,
        attachment_mount: str = "/workspace/group",
        web_client: Optional[AsyncWebClient] = None,
        socket_client: Optional[SocketModeClient] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize Slack adapter.

        Args:
            on_message: Callback for each deliverable inbound message
            on_chat_metadata: Callback for every observed conversation
            registered_groups: Lookup of JIDs that receive full delivery
            bot_token: Bot User OAuth Token (xoxb-...)
            app_token: App-Level Token for Socket Mode (xapp-...)
            assistant_name: Name shown in front of outbound messages
            groups_dir: Root of per-group folders for downloaded files
            on_chat_name: Optional callback receiving synced channel names
            sync_on_connect: Sync channel names after connecting
            sync_limit: Page size for the channel name sync
            download_files: Download files attached to inbound messages
            attachment_mount: Path prefix reported for downloaded files
            web_client: Preconfigured Web API client
            socket_client: Preconfigured Socket Mode client
            http_client: Client used for file downloads
        """
        self._on_message = on_message
        self._on_chat_metadata = on_chat_metadata
        self._registered_groups = registered_groups
        self._on_chat_name = on_chat_name

        self._bot_token = bot_token
        self._app_token = app_token
        self._assistant_name = assistant_name
        self._groups_dir = Path(groups_dir)
        self._sync_on_connect = sync_on_connect
        self._sync_limit = sync_limit
        self._download_files = download_files
        self._attachment_mount = attachment_mount.rstrip("/")

        self._web_client = web_client
        self._socket_client = socket_client
        self._http_client = http_client

        self._connected = False
        self._bot_user_id = ""

    @property
    def name(self) -> str:
        return ChannelType.SLACK.value

    @property
    def bot_user_id(self) -> str:
        """Bot user id resolved during ``connect()``."""
        return self._bot_user_id

    # ------------------------------------------------------------------
    # Channel contract
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Authenticate, open the socket, then sync channel names."""
        if self._connected:
            logger.warning("Slack channel already connected")
            return

        if self._web_client is None:
            self._web_client = AsyncWebClient(token=self._bot_token)

        # Resolve bot user ID so we can flag self-messages
        try:
            auth = await self._web_client.auth_test()
            self._bot_user_id = auth["user_id"]
            logger.info(f"Slack bot authenticated as user ID: {self._bot_user_id}")
        except Exception as e:
            logger.error(f"Failed to authenticate Slack bot: {e}")
            raise ChannelConnectionError(f"Slack authentication failed: {e}", self.name) from e

        if self._socket_client is None:
            self._socket_client = SocketModeClient(
                app_token=self._app_token,
                web_client=self._web_client,
            )
        listeners = self._socket_client.socket_mode_request_listeners
        if self._handle_socket_event not in listeners:
            listeners.append(self._handle_socket_event)

        try:
            await self._socket_client.connect()
        except Exception as e:
            logger.error(f"Failed to open Slack socket: {e}")
            raise ChannelConnectionError(f"Slack socket connection failed: {e}", self.name) from e

        self._connected = True
        logger.info("Connected to Slack (Socket Mode)")

        if self._sync_on_connect:
            await self.sync_channels()

    async def send_message(self, jid: str, text: str) -> None:
        """Post ``*<assistant>:* <text>`` to the channel; failures are logged."""
        if not self._connected or self._web_client is None:
            logger.warning(f"Slack not connected, dropping message to {jid}")
            return

        channel_id = jid[len(JID_PREFIX) :] if jid.startswith(JID_PREFIX) else jid
        try:
            await self._web_client.chat_postMessage(
                channel=channel_id,
                text=f"*{self._assistant_name}:* {text}",
                mrkdwn=True,
            )
            logger.info(f"Slack message sent to {jid} ({len(text)} chars)")
        except Exception as e:
            logger.error(f"Failed to send Slack message to {jid}: {e}")

    def is_connected(self) -> bool:
        return self._connected

    def owns_jid(self, jid: str) -> bool:
        return isinstance(jid, str) and jid.startswith(JID_PREFIX)

    async def disconnect(self) -> None:
        """Close the socket. Safe to call when already disconnected."""
        was_connected = self._connected
        self._connected = False

        if self._socket_client is not None:
            socket_client, self._socket_client = self._socket_client, None
            await socket_client.close()

        if was_connected:
            logger.info("Disconnected from Slack")

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    async def send_file(self, jid: str, file_path: str | Path, comment: Optional[str] = None) -> None:
        """Upload a file to the channel; failures are logged."""
        if not self._connected or self._web_client is None:
            logger.warning(f"Slack not connected, dropping file upload to {jid}")
            return

        channel_id = jid[len(JID_PREFIX) :] if jid.startswith(JID_PREFIX) else jid
        path = Path(file_path)
        try:
            await self._web_client.files_upload_v2(
                channel=channel_id,
                file=str(path),
                filename=path.name,
                initial_comment=f"*{self._assistant_name}:* {comment}" if comment else None,
            )
            logger.info(f"Slack file uploaded to {jid}: {path.name}")
        except Exception as e:
            logger.error(f"Failed to upload Slack file {path} to {jid}: {e}")

    async def sync_channels(self) -> int:
        """Report ``#name`` for every visible channel through ``on_chat_name``.

        Returns:
            Number of channels reported
        """
        if self._web_client is None:
            return 0

        try:
            logger.info("Syncing Slack channel metadata...")
            result = await self._web_client.conversations_list(
                types="public_channel,private_channel",
                exclude_archived=True,
                limit=self._sync_limit,
            )
        except Exception as e:
            logger.error(f"Failed to sync Slack channels: {e}")
            return 0

        count = 0
        for channel in result.get("channels") or []:
            if channel.get("id") and channel.get("name"):
                if self._on_chat_name:
                    self._on_chat_name(make_jid(ChannelType.SLACK, channel["id"]), f"#{channel['name']}")
                count += 1

        logger.info(f"Slack channel metadata synced ({count} channels)")
        return count

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def _handle_socket_event(self, client: SocketModeClient, req: SocketModeRequest) -> None:
        """Acknowledge a Socket Mode request and dispatch its event."""
        await client.send_socket_mode_response(SocketModeResponse(envelope_id=req.envelope_id))

        if req.type != "events_api":
            return

        event = req.payload.get("event", {})
        event_type = event.get("type")
        try:
            if event_type == "message":
                await self._handle_message_event(event)
            elif event_type == "app_mention":
                await self._handle_app_mention_event(event)
        except Exception as e:
            logger.error(f"Error handling Slack {event_type} event: {e}", exc_info=True)

    async def _handle_message_event(self, event: dict[str, Any]) -> None:
        """Normalize a ``message`` event."""
        # Skip bot messages and non-user subtypes; file uploads come through
        if event.get("bot_id"):
            return
        subtype = event.get("subtype")
        if subtype and subtype != "file_share":
            return

        text = event.get("text") or ""
        files = event.get("files") or []
        if not text and not files:
            return

        channel_id = event.get("channel", "")
        chat_jid = make_jid(ChannelType.SLACK, channel_id)
        timestamp = slack_ts_to_iso(event["ts"])

        # Discovery happens for every channel, registered or not
        is_group = channel_id.startswith(("C", "G"))
        self._on_chat_metadata(chat_jid, timestamp, None, self.name, is_group)

        groups = self._registered_groups()
        group = groups.get(chat_jid)
        if group is None:
            return

        user_id = event.get("user") or "unknown"
        sender_name = await self._resolve_sender_name(user_id)

        content = text
        if files and self._download_files:
            file_paths = await self._download_attachments(group, files)
            if file_paths:
                file_list = "\n".join(f"[file: {p}]" for p in file_paths)
                content = f"{content}\n{file_list}" if content else file_list
        if not content:
            return

        from_me = user_id == self._bot_user_id
        self._on_message(
            chat_jid,
            InboundMessage(
                id=event["ts"],
                chat_jid=chat_jid,
                sender=user_id,
                sender_name=sender_name,
                content=content,
                timestamp=timestamp,
                is_from_me=from_me,
                is_bot_message=from_me,
            ),
        )

    async def _handle_app_mention_event(self, event: dict[str, Any]) -> None:
        """Normalize an ``app_mention`` event (someone @mentioned the bot)."""
        chat_jid = make_jid(ChannelType.SLACK, event.get("channel", ""))
        timestamp = slack_ts_to_iso(event["ts"])

        self._on_chat_metadata(chat_jid, timestamp, None, self.name, True)

        if chat_jid not in self._registered_groups():
            return

        content = event.get("text") or ""
        if not content:
            return

        user_id = event.get("user") or "unknown"
        sender_name = await self._resolve_sender_name(user_id)

        self._on_message(
            chat_jid,
            InboundMessage(
                id=event["ts"],
                chat_jid=chat_jid,
                sender=user_id,
                sender_name=sender_name,
                content=content,
                timestamp=timestamp,
            ),
        )

    async def _resolve_sender_name(self, user_id: str) -> str:
        """Display name, then real name, then handle; the user id on failure."""
        if self._web_client is None:
            return user_id

        try:
            user_info = await self._web_client.users_info(user=user_id)
        except Exception as e:
            logger.debug(f"Failed to get Slack user info for {user_id}: {e}")
            return user_id

        user = user_info.get("user") or {}
        profile = user.get("profile") or {}
        return profile.get("display_name") or user.get("real_name") or user.get("name") or user_id

    async def _download_attachments(
        self, group: RegisteredGroup, files: list[dict[str, Any]]
    ) -> list[str]:
        """Save attached files under the group's downloads folder.

        Returns:
            Paths as seen from inside the agent's workspace mount
        """
        downloads_dir = self._groups_dir / group.folder / "downloads"
        downloads_dir.mkdir(parents=True, exist_ok=True)

        if self._http_client is not None:
            return await self._fetch_files(self._http_client, downloads_dir, files)

        async with httpx.AsyncClient(follow_redirects=True) as client:
            return await self._fetch_files(client, downloads_dir, files)

    async def _fetch_files(
        self, client: httpx.AsyncClient, downloads_dir: Path, files: list[dict[str, Any]]
    ) -> list[str]:
        file_paths: list[str] = []
        for file in files:
            url = file.get("url_private_download")
            if not url:
                continue

            file_id = file.get("id", "")
            try:
                resp = await client.get(url, headers={"Authorization": f"Bearer {self._bot_token}"})
                if not resp.is_success:
                    logger.warning(f"Failed to download Slack file {file_id}: HTTP {resp.status_code}")
                    continue

                # Slack sometimes returns an HTML login page instead of the file
                content_type = resp.headers.get("content-type", "")
                if "text/html" in content_type:
                    logger.warning(
                        f"Slack returned HTML instead of file {file_id}; "
                        "the bot may lack the files:read scope"
                    )
                    continue

                safe_name = f"{int(time.time() * 1000)}-{safe_filename(file.get('name') or file_id)}"
                (downloads_dir / safe_name).write_bytes(resp.content)
                file_paths.append(f"{self._attachment_mount}/downloads/{safe_name}")
                logger.info(f"Slack file downloaded: {file.get('name')} -> {downloads_dir / safe_name}")
            except (httpx.HTTPError, OSError) as e:
                logger.error(f"Error downloading Slack file {file_id}: {e}")

        return file_paths
