"""
@PURPOSE: 发布输入的数据结构: 商品记录与已登录会话
@OUTLINE:
  - class Listing: 待发布商品
  - class SessionCookie: 会话 Cookie
  - class MarketplaceSession: 已认证账号的 Cookie + 身份字符串
@GOTCHAS:
  - 同时接受 snake_case 与上游 JSON 的 camelCase 字段名(genderHint/imageUrls/userAgent)
  - Listing 不在模型层做最小长度校验, 由发布流程 fail-fast 返回 SubmissionRejected
@DEPENDENCIES:
  - 外部: pydantic
@RELATED: workflows/publish_workflow.py, browser/session_controller.py
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Listing(BaseModel):
    """待发布商品.

    可选字段缺失时直接跳过, 不做默认填充(condition 会做映射, category 总会解析到兜底类目)。

    Attributes:
        title: 标题
        description: 描述
        price: 价格(欧元)
        category: 自由文本类目
        brand: 品牌
        gender_hint: 性别/受众提示
        size: 尺码
        condition: 成色(规范值, 如 good/very_good)
        color: 颜色
        image_urls: 图片地址列表
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(default="", description="标题")
    description: str = Field(default="", description="描述")
    price: float = Field(..., ge=0, description="价格")
    category: str = Field(default="", description="类目文本")
    brand: str | None = Field(default=None, description="品牌")
    gender_hint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gender_hint", "genderHint", "gender"),
        description="性别提示",
    )
    size: str | None = Field(default=None, description="尺码")
    condition: str | None = Field(default=None, description="成色")
    color: str | None = Field(default=None, description="颜色")
    image_urls: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("image_urls", "imageUrls", "images"),
        description="图片地址",
    )

    @property
    def price_text(self) -> str:
        """价格输入框使用的文本(整数不带小数)."""
        if float(self.price).is_integer():
            return str(int(self.price))
        return f"{self.price:.2f}"


class SessionCookie(BaseModel):
    """会话 Cookie, 字段与浏览器导出格式一致."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    value: str
    domain: str | None = None
    path: str | None = None
    expiry: float | None = Field(
        default=None, validation_alias=AliasChoices("expiry", "expires", "expirationDate")
    )
    http_only: bool = Field(default=False, validation_alias=AliasChoices("http_only", "httpOnly"))
    secure: bool = False
    same_site: str | None = Field(
        default=None, validation_alias=AliasChoices("same_site", "sameSite")
    )


class MarketplaceSession(BaseModel):
    """已认证账号的会话.

    Attributes:
        cookies: Cookie 列表
        identity_string: 登录时使用的 User-Agent
    """

    model_config = ConfigDict(populate_by_name=True)

    cookies: list[SessionCookie] = Field(default_factory=list)
    identity_string: str | None = Field(
        default=None,
        validation_alias=AliasChoices("identity_string", "identityString", "userAgent", "user_agent"),
    )

    def cookie_dicts(self) -> list[dict[str, Any]]:
        """以浏览器导出格式(camelCase)输出 Cookie."""
        return [
            {
                "name": cookie.name,
                "value": cookie.value,
                "domain": cookie.domain,
                "path": cookie.path,
                "expiry": cookie.expiry,
                "httpOnly": cookie.http_only,
                "secure": cookie.secure,
                "sameSite": cookie.same_site,
            }
            for cookie in self.cookies
        ]
