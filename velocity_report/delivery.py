"""Message chunking and webhook delivery."""

import logging
from typing import List, Optional, Sequence

import requests

DEFAULT_CHUNK_LIMIT = 1800


def join_blocks(blocks: Sequence[Optional[str]]) -> str:
    """Join the present blocks of one message group with blank lines."""
    return '\n\n'.join(block for block in blocks if block).strip()


def chunk_message(text: str, limit: int = DEFAULT_CHUNK_LIMIT) -> List[str]:
    """Split text into chunks of at most ``limit`` characters.

    Whole lines are packed greedily; a line that is longer than the limit on
    its own is cut at the limit boundary.

    Args:
        text: Message text
        limit: Maximum characters per chunk

    Returns:
        Chunks in order; rejoining line-packed chunks with newlines (and
        hard-split pieces with nothing) reproduces the text
    """
    chunks: List[str] = []
    if not text:
        return chunks

    current: Optional[str] = None
    for line in text.split('\n'):
        candidate = line if current is None else f"{current}\n{line}"
        if len(candidate) <= limit:
            current = candidate
            continue

        if current is not None:
            chunks.append(current)
            current = None

        if len(line) <= limit:
            current = line
        else:
            for start in range(0, len(line), limit):
                chunks.append(line[start:start + limit])

    if current is not None:
        chunks.append(current)
    return chunks


class WebhookDispatcher:
    """Posts message groups to a chat webhook, one request per chunk."""

    def __init__(self, webhook_url: str, session: requests.Session = None,
                 timeout: int = 30, limit: int = DEFAULT_CHUNK_LIMIT):
        self.webhook_url = webhook_url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.limit = limit

    def send(self, content: str):
        """Post a single chunk.

        Raises:
            requests.HTTPError: If the webhook rejects the message
        """
        response = self.session.post(self.webhook_url, json={'content': content}, timeout=self.timeout)
        response.raise_for_status()

    def post_blocks(self, blocks: Sequence[Optional[str]]) -> int:
        """Join, chunk and post one message group.

        Returns:
            Number of chunks posted
        """
        content = join_blocks(blocks)
        if not content:
            return 0
        sent = 0
        for chunk in chunk_message(content, self.limit):
            if not chunk.strip():
                continue
            self.send(chunk)
            sent += 1
        logging.debug(f"Posted message group in {sent} chunk(s)")
        return sent
