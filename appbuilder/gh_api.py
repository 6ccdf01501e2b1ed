import asyncio
import base64
import logging
import time
from typing import List, Optional

import httpx

from .errors import HostingActivationError, PublishError
from .models import RepositoryRecord
from .settings import Settings

logger = logging.getLogger("appbuilder.github")

DESCRIPTION_LIMIT = 100
CONTENT_PATH = "index.html"

MIT_LICENSE = """MIT License

Copyright (c) %YEAR% %AUTHOR%

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.
"""

def render_license(author: str) -> str:
    return MIT_LICENSE.replace("%YEAR%", time.strftime("%Y")).replace("%AUTHOR%", author)

def render_readme(repo_name: str, brief: str, checks: List[str]) -> str:
    checks_text = "\n".join(f"- {c}" for c in checks)
    return f"""# {repo_name}

## Summary
{brief}

## Setup
1. Clone this repository
2. Open {CONTENT_PATH} in a browser

## Usage
Visit the GitHub Pages URL or open {CONTENT_PATH} locally.

## Code Explanation
This application is built as a single HTML file with embedded CSS and JavaScript to meet the following requirements:
{checks_text}

## License
MIT License
"""

def pages_url_for(owner: str, repo_name: str) -> str:
    return f"https://{owner.strip('/')}.github.io/{repo_name.strip('/')}/"


class RepositoryPublisher:
    """
    Creates one public repository per build and commits README.md, LICENSE and
    index.html to it through the contents API, one commit per file.

    Nothing here is retried. Creation and file writes raise ``PublishError``;
    Pages activation failures are logged and the build carries on, since the
    repository is useful without hosting.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None, sleep=asyncio.sleep):
        self.settings = settings
        self.transport = transport
        self.sleep = sleep

    @property
    def owner(self) -> str:
        return self.settings.GITHUB_USERNAME

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.settings.GITHUB_TOKEN}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.GITHUB_API_BASE,
            headers=self._headers(),
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            transport=self.transport,
        )

    async def publish(self, name: str, content: str, brief: str, checks: List[str]) -> RepositoryRecord:
        if not self.owner:
            raise PublishError("GITHUB_USERNAME not set")

        async with self._client() as client:
            repo_url = await self.create_repo(client, name, brief)
            await self.wait_until_ready(client, name)

            await self.put_file(client, name, "README.md", render_readme(name, brief, checks), "Add README")
            await self.put_file(client, name, "LICENSE", render_license(self.owner), "Add MIT license")
            commit_sha = await self.put_file(client, name, CONTENT_PATH, content, "Add application code")

            try:
                await self.enable_pages(client, name)
            except HostingActivationError as e:
                logger.warning("Pages not enabled for %s/%s, may need manual enabling: %s", self.owner, name, e)

        return RepositoryRecord(
            repo_url=repo_url,
            commit_sha=commit_sha,
            pages_url=pages_url_for(self.owner, name),
        )

    async def create_repo(self, client: httpx.AsyncClient, name: str, brief: str) -> str:
        payload = {
            "name": name,
            "description": brief[:DESCRIPTION_LIMIT],
            "private": False,
            "auto_init": False,
        }
        try:
            resp = await client.post("/user/repos", json=payload)
            resp.raise_for_status()
            repo_url = resp.json().get("html_url") or f"https://github.com/{self.owner}/{name}"
        except httpx.HTTPStatusError as e:
            raise PublishError(f"creating repository {name} failed: {e.response.status_code} {e.response.text}") from e
        except httpx.HTTPError as e:
            raise PublishError(f"creating repository {name} failed: {e}") from e
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PublishError(f"creating repository {name} returned an unreadable body") from e

        logger.info("created repository %s", repo_url)
        return repo_url

    async def wait_until_ready(self, client: httpx.AsyncClient, name: str) -> None:
        """
        Poll the new repository until the API reports it, at most
        ``REPO_READY_ATTEMPTS`` times. Without any readiness signal fall back
        to a single fixed settle delay.
        """
        interval = self.settings.REPO_SETTLE_SECONDS
        for attempt in range(self.settings.REPO_READY_ATTEMPTS):
            try:
                resp = await client.get(f"/repos/{self.owner}/{name}")
                if resp.status_code == 200:
                    return
                logger.debug("repository %s not ready yet (status=%s)", name, resp.status_code)
            except httpx.HTTPError as e:
                logger.debug("readiness check for %s failed: %s", name, e)
            await self.sleep(interval)

        logger.warning("no readiness signal for %s; settling for %ss", name, interval)
        await self.sleep(interval)

    async def put_file(self, client: httpx.AsyncClient, name: str, path: str, text: str, message: str) -> str:
        payload = {
            "message": message,
            "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
        }
        try:
            resp = await client.put(f"/repos/{self.owner}/{name}/contents/{path}", json=payload)
            resp.raise_for_status()
            sha = resp.json()["commit"]["sha"]
        except httpx.HTTPStatusError as e:
            raise PublishError(f"writing {path} to {name} failed: {e.response.status_code} {e.response.text}") from e
        except httpx.HTTPError as e:
            raise PublishError(f"writing {path} to {name} failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise PublishError(f"writing {path} to {name} returned no commit sha") from e

        logger.info("committed %s to %s (%s)", path, name, sha)
        return sha

    async def enable_pages(self, client: httpx.AsyncClient, name: str) -> None:
        payload = {"source": {"branch": self.settings.DEFAULT_BRANCH, "path": self.settings.PAGES_BUILD_PATH}}
        try:
            resp = await client.post(f"/repos/{self.owner}/{name}/pages", json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise HostingActivationError(f"{e.response.status_code} {e.response.text}") from e
        except httpx.HTTPError as e:
            raise HostingActivationError(str(e)) from e
        logger.info("enabled Pages for %s/%s", self.owner, name)
