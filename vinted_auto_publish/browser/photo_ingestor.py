"""
@PURPOSE: 商品图片上传 - 下载远程图片到临时目录, 注入发布页的文件控件, 并保证清理
@OUTLINE:
  - ClientFactory: httpx.AsyncClient 工厂类型(测试时注入 MockTransport)
  - class PhotoIngestor: 图片上传器
    - def extension_for(): 从 URL 推断扩展名
    - async def ingest(): 逐张下载 -> 校验大小 -> 注入 -> 等待缩略图
@GOTCHAS:
  - 单张图片失败只记录, 不中断后续图片; 全部失败由发布流程判定为硬失败
  - 畸形 URL(非法端口、IPv6 括号不闭合)记为 download 阶段失败
  - 每次调用只处理前 max_photos 张, 其余计入 skipped_count
  - 所有临时文件在 finally 中删除, 包括取消与异常路径
  - 缩略图未出现只记警告: 文件已注入, 页面确认只是尽力而为
@DEPENDENCIES:
  - 外部: httpx, playwright, loguru
  - 内部: element_locator, targets, utils.page_waiter, models.result
@RELATED: workflows/publish_workflow.py
"""

from __future__ import annotations

import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import httpx
from loguru import logger
from playwright.async_api import Error as PlaywrightError

from ..config.settings import PhotoConfig, settings
from ..models.result import PhotoFailure, PhotoIngestionResult
from ..utils.page_waiter import PageWaiter, WaitStrategy
from .element_locator import ElementLocator
from .targets import PHOTO_THUMBNAIL_SELECTORS, FieldRole

if TYPE_CHECKING:
    from playwright.async_api import Page

ClientFactory = Callable[[], httpx.AsyncClient]


class EmptyDownloadError(ValueError):
    """下载结果为 0 字节."""


class PhotoIngestor:
    """图片上传器.

    Examples:
        >>> ingestor = PhotoIngestor(ElementLocator())
        >>> result = await ingestor.ingest(page, ["https://example.com/a.jpg"])
        >>> result.uploaded_count
        1
    """

    SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic"}

    def __init__(
        self,
        locator: ElementLocator,
        *,
        config: PhotoConfig | None = None,
        client_factory: ClientFactory | None = None,
        settle_timeout_ms: int | None = None,
        wait_strategy: WaitStrategy | None = None,
    ) -> None:
        self.locator = locator
        self.config = config or settings.photos
        self.client_factory = client_factory or self._default_client
        self.settle_timeout_ms = (
            settings.timing.photo_settle_timeout_ms
            if settle_timeout_ms is None
            else settle_timeout_ms
        )
        self.wait_strategy = wait_strategy or WaitStrategy()

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.download_timeout_s,
            follow_redirects=True,
            headers={
                "User-Agent": settings.browser.user_agent,
                "Accept": "image/avif,image/webp,image/*,*/*;q=0.8",
            },
        )

    def extension_for(self, url: str) -> str:
        """URL 路径后缀 -> 扩展名, 无法识别时使用默认值."""
        suffix = Path(urlparse(url).path).suffix.lower()
        if suffix in self.SUPPORTED_EXTENSIONS:
            return suffix
        return self.config.default_extension

    async def _download(self, client: httpx.AsyncClient, url: str, target: Path) -> int:
        async with client.stream("GET", url) as response:
            response.raise_for_status()
            with target.open("wb") as handle:
                async for chunk in response.aiter_bytes(self.config.chunk_size):
                    handle.write(chunk)

        size = target.stat().st_size
        if size == 0:
            raise EmptyDownloadError("下载结果为空文件")
        return size

    @staticmethod
    async def _thumbnail_count(page: Page) -> int:
        total = 0
        for selector in PHOTO_THUMBNAIL_SELECTORS:
            total += await page.locator(selector).count()
        return total

    async def _settle(self, page: Page, before: int) -> bool:
        async def _grew(current: Page) -> bool:
            return await self._thumbnail_count(current) > before

        waiter = PageWaiter(page, self.wait_strategy)
        return await waiter.wait_for_condition(_grew, timeout_ms=self.settle_timeout_ms)

    @staticmethod
    def _record(
        result: PhotoIngestionResult, index: int, url: str, stage: str, reason: object
    ) -> None:
        logger.bind(field="photos").warning("图片 {} 失败 [{}]: {}", index + 1, stage, reason)
        result.failures.append(PhotoFailure(index=index, url=url, stage=stage, reason=str(reason)))

    @staticmethod
    def _cleanup(files: Sequence[Path], scratch_dir: Path) -> None:
        for path in files:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("删除临时图片失败 {}: {}", path, exc)
        try:
            scratch_dir.rmdir()
        except OSError as exc:
            logger.debug("临时目录未删除 {}: {}", scratch_dir, exc)

    def _make_scratch_dir(self) -> Path:
        root = self.config.scratch_dir
        if root:
            Path(root).mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix="vinted_photos_", dir=root))

    async def ingest(self, page: Page, image_urls: Sequence[str]) -> PhotoIngestionResult:
        """下载并上传图片.

        Args:
            page: 位于发布页的页面
            image_urls: 图片地址列表

        Returns:
            上传汇总结果(失败逐张记录)
        """
        urls = list(image_urls)
        selected = urls[: self.config.max_photos]
        result = PhotoIngestionResult(
            requested_count=len(selected),
            skipped_count=len(urls) - len(selected),
        )
        if result.skipped_count:
            logger.warning(
                "图片数量 {} 超过上限 {}, 忽略 {} 张",
                len(urls),
                self.config.max_photos,
                result.skipped_count,
            )
        if not selected:
            logger.info("没有图片需要上传")
            return result

        scratch_dir = self._make_scratch_dir()
        created: list[Path] = []
        logger.info("开始上传 {} 张图片 (临时目录 {})", len(selected), scratch_dir)

        try:
            async with self.client_factory() as client:
                for index, url in enumerate(selected):
                    try:
                        target = scratch_dir / f"photo_{index:02d}{self.extension_for(url)}"
                        created.append(target)
                        result.scratch_files.append(str(target))
                        size = await self._download(client, url, target)
                    except (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError) as exc:
                        # ValueError 包含 EmptyDownloadError 与畸形 URL
                        self._record(result, index, url, "download", exc)
                        continue
                    logger.debug("图片 {} 已下载 ({} 字节)", index + 1, size)

                    try:
                        before = await self._thumbnail_count(page)
                    except PlaywrightError:
                        before = 0

                    injected = await self.locator.set_files(
                        page, FieldRole.PHOTO_INPUT, str(target)
                    )
                    if not injected.found:
                        self._record(result, index, url, "inject", "未找到图片上传控件")
                        continue
                    result.uploaded_count += 1

                    if await self._settle(page, before):
                        logger.debug("图片 {} 缩略图已出现", index + 1)
                    else:
                        logger.warning(
                            "图片 {} 已注入, 但 {}ms 内未见缩略图",
                            index + 1,
                            self.settle_timeout_ms,
                        )
        finally:
            self._cleanup(created, scratch_dir)

        logger.info(
            "图片上传完成: 成功 {}/{}, 失败 {}",
            result.uploaded_count,
            result.requested_count,
            len(result.failures),
        )
        return result
