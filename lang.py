"""Localized operator-facing strings."""

import config

DEFAULT_LOCALE = 'en_US'

LANG_PROPS = {
    'en_US': {
        'skipVersionMailSubject': 'Blog upgrade skipped: unsupported version',
        'skipVersionMailBody': (
            '<p>Your blog data is at a version this release cannot upgrade directly.</p>'
            '<p>Please install each intermediate release in turn, starting with the one '
            'that follows your current version, then start this release again.</p>'
        ),
    },
    'zh_CN': {
        'skipVersionMailSubject': '博客升级已跳过：不支持的版本',
        'skipVersionMailBody': (
            '<p>当前数据版本无法直接升级到此版本。</p>'
            '<p>请按顺序依次安装中间版本后再启动此版本。</p>'
        ),
    },
}


def get(key: str, locale: str = None) -> str:
    """Look up key for locale, falling back to en_US and then to the key itself."""
    locale = locale or config.LOCALE
    props = LANG_PROPS.get(locale, {})
    if key in props:
        return props[key]
    return LANG_PROPS[DEFAULT_LOCALE].get(key, key)
