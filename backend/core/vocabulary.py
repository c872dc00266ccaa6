from typing import Dict

# Spoken Japanese terms -> canonical item names
JAPANESE_TO_ENGLISH: Dict[str, str] = {
    "にんじん": "carrots",
    "人参": "carrots",
    "ニンジン": "carrots",
    "キャロット": "carrots",
    "たまご": "eggs",
    "卵": "eggs",
    "タマゴ": "eggs",
    "エッグ": "eggs",
    "牛乳": "milk",
    "ミルク": "milk",
    "ぎゅうにゅう": "milk",
    "りんご": "apples",
    "リンゴ": "apples",
    "アップル": "apples",
    "パン": "bread",
    "ぱん": "bread",
    "ブレッド": "bread",
    "バター": "butter",
    "ばたー": "butter",
    "チーズ": "cheese",
    "ちーず": "cheese",
    "米": "rice",
    "お米": "rice",
    "こめ": "rice",
    "ライス": "rice",
}

# Canonical item names -> preferred spoken label
ENGLISH_TO_JAPANESE: Dict[str, str] = {
    "carrots": "にんじん",
    "eggs": "たまご",
    "milk": "牛乳",
    "apples": "りんご",
    "bread": "パン",
    "butter": "バター",
    "cheese": "チーズ",
    "rice": "米",
}


def to_english(term: str) -> str:
    term = (term or "").strip()
    return JAPANESE_TO_ENGLISH.get(term, term)


def to_japanese(name: str) -> str:
    name = (name or "").strip()
    return ENGLISH_TO_JAPANESE.get(name.lower(), name)
