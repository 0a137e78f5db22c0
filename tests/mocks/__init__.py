"""
@PURPOSE: 测试用 Mock 模块
@OUTLINE:
  - browser_mock: 假 DOM 与 Playwright Page/Locator
  - session_mock: 假浏览器会话与工厂
  - vinted_page: 预置的 Vinted 首页/发布页场景
"""
