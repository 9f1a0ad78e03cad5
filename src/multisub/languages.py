"""Target language registry and output file naming."""

from .models import LanguageInfo

DEFAULT_LANGUAGES: list[LanguageInfo] = [
    LanguageInfo(code="en", name="English", native_name="English", korean_name="영어", file_code="ENG"),
    LanguageInfo(code="zh", name="Chinese", native_name="中文", korean_name="중국어", file_code="CHN"),
    LanguageInfo(code="vi", name="Vietnamese", native_name="Tiếng Việt", korean_name="베트남어", file_code="VIE"),
    LanguageInfo(code="it", name="Italian", native_name="Italiano", korean_name="이탈리아어", file_code="ITA"),
    LanguageInfo(code="fr", name="French", native_name="Français", korean_name="프랑스어", file_code="FRA"),
    LanguageInfo(code="es", name="Spanish", native_name="Español", korean_name="스페인어", file_code="SPA"),
    LanguageInfo(code="de", name="German", native_name="Deutsch", korean_name="독일어", file_code="DEU"),
    LanguageInfo(code="tr", name="Turkish", native_name="Türkçe", korean_name="터키어", file_code="TUR"),
    LanguageInfo(code="uk", name="Ukrainian", native_name="Українська", korean_name="우크라이나어", file_code="UKR"),
    LanguageInfo(code="ja", name="Japanese", native_name="日本語", korean_name="일본어", file_code="JAP", enabled=False),
    LanguageInfo(code="pt", name="Portuguese", native_name="Português", korean_name="포르투갈어", file_code="POR", enabled=False),
    LanguageInfo(code="ru", name="Russian", native_name="Русский", korean_name="러시아어", file_code="RUS", enabled=False),
    LanguageInfo(code="ar", name="Arabic", native_name="العربية", korean_name="아랍어", file_code="ARA", enabled=False),
    LanguageInfo(code="hi", name="Hindi", native_name="हिन्दी", korean_name="힌디어", file_code="HIN", enabled=False),
    LanguageInfo(code="th", name="Thai", native_name="ภาษาไทย", korean_name="태국어", file_code="THA", enabled=False),
    LanguageInfo(code="id", name="Indonesian", native_name="Bahasa Indonesia", korean_name="인도네시아어", file_code="IND", enabled=False),
    LanguageInfo(code="nl", name="Dutch", native_name="Nederlands", korean_name="네덜란드어", file_code="NLD", enabled=False),
    LanguageInfo(code="pl", name="Polish", native_name="Polski", korean_name="폴란드어", file_code="POL", enabled=False),
    LanguageInfo(code="sv", name="Swedish", native_name="Svenska", korean_name="스웨덴어", file_code="SWE", enabled=False),
    LanguageInfo(code="cs", name="Czech", native_name="Čeština", korean_name="체코어", file_code="CZE", enabled=False),
]

KOREAN = LanguageInfo(code="ko", name="Korean", native_name="한국어", korean_name="한국어", file_code="KOR")


def _find(code: str, languages: list[LanguageInfo]) -> LanguageInfo | None:
    code = code.lower()
    if code == KOREAN.code:
        return KOREAN
    return next((lang for lang in languages if lang.code == code), None)


def get_language_name(code: str, languages: list[LanguageInfo] | None = None) -> str:
    """Get the name used in prompts, e.g. "Français (French)"."""
    lang = _find(code, languages or DEFAULT_LANGUAGES)
    if lang is None:
        return code
    if lang.native_name == lang.name:
        return lang.name
    return f"{lang.native_name} ({lang.name})"


def get_file_code(code: str, languages: list[LanguageInfo] | None = None) -> str:
    """Get the 3-letter file tag for a language, falling back to the code."""
    lang = _find(code, languages or DEFAULT_LANGUAGES)
    return lang.file_code if lang else code.upper()


def get_enabled_languages(languages: list[LanguageInfo]) -> list[LanguageInfo]:
    return [lang for lang in languages if lang.enabled]


def output_filename(
    code: str,
    base_name: str,
    languages: list[LanguageInfo] | None = None,
) -> str:
    """Name of the translated file, e.g. "[ENG]_episode1.srt"."""
    return f"[{get_file_code(code, languages)}]_{base_name}.srt"


# Prompt display names for every known code, e.g. LANGUAGE_NAMES["fr"] == "Français (French)"
LANGUAGE_NAMES: dict[str, str] = {
    lang.code: get_language_name(lang.code) for lang in [KOREAN, *DEFAULT_LANGUAGES]
}
