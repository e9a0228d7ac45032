from services import media_catalog


def test_longest_keyword_wins():
    keyword, text = media_catalog.match_keyword("Intro to Machine Learning with Python")
    assert keyword == "machine learning"


def test_keywords_match_whole_words_only():
    # "ai" must not match inside "maintain"
    assert media_catalog.match_keyword("How to maintain legacy code") is None


def test_texts_tried_in_order():
    selection = media_catalog.select_static_video("Getting Started", "Intro to Python", "Programming")
    assert selection.bucket == "python"
    assert selection.matched_in == "Intro to Python"


def test_selection_is_deterministic_and_indexed_by_first_letter():
    first = media_catalog.select_static_video("React Hooks Deep Dive", "", "")
    second = media_catalog.select_static_video("React Hooks Deep Dive", "", "")
    videos = media_catalog.MEDIA_BUCKETS["react"]["videos"]
    assert first == second
    assert first.url == videos[ord("r") % len(videos)]


def test_unmatched_titles_use_default_bucket():
    selection = media_catalog.select_static_video("Knife Skills", "Cooking", "Lifestyle")
    assert selection.bucket == "default"
    assert selection.keyword is None
    assert media_catalog.select_keyword_thumbnail("Knife Skills", "Cooking", "Lifestyle") is None
    assert media_catalog.default_thumbnail("Knife Skills") in media_catalog.MEDIA_BUCKETS["default"]["thumbnails"]


def test_videos_for_category_cycles():
    urls = media_catalog.videos_for_category("Databases", 7)
    bucket = media_catalog.MEDIA_BUCKETS["database"]["videos"]
    assert len(urls) == 7
    assert urls[len(bucket)] == bucket[0]


def test_index_for_empty_title():
    assert media_catalog.index_for("", 5) == 0
