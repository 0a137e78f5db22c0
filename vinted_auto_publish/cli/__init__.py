"""
@PURPOSE: 命令行入口包
@RELATED: main.py, commands/
"""
