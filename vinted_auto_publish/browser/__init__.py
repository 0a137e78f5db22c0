"""
@PURPOSE: 浏览器自动化模块, 封装 Playwright 会话、弹性元素定位、类目导航与图片上传
@OUTLINE:
  - BrowserSession: 单次发布尝试的浏览器会话
  - SessionController: Cookie 会话/登录控制
  - ElementLocator: 策略链元素定位器
  - TaxonomyNavigator: 类目导航状态机
  - PhotoIngestor: 图片上传器
@DEPENDENCIES:
  - 外部: playwright, httpx
@RELATED: ../workflows/, ../config/
"""

from .browser_session import BrowserFactory, BrowserSession, default_browser_factory
from .element_locator import ElementLocator, LocatedElement, NotFound
from .photo_ingestor import PhotoIngestor
from .session_controller import SessionController
from .targets import FieldRole, OptionTarget
from .taxonomy_navigator import NavigationReport, TaxonomyNavigator

__all__ = [
    "BrowserFactory",
    "BrowserSession",
    "ElementLocator",
    "FieldRole",
    "LocatedElement",
    "NavigationReport",
    "NotFound",
    "OptionTarget",
    "PhotoIngestor",
    "SessionController",
    "TaxonomyNavigator",
    "default_browser_factory",
]
