from brandmonitor.extraction.citation_extractor import extract_citations, find_domain_citation


def test_extracts_urls_in_order_without_duplicates():
    text = (
        "Sources: https://acme.com/docs, https://example.org/review and "
        "again https://acme.com/docs."
    )

    assert extract_citations(text) == ["https://acme.com/docs", "https://example.org/review"]


def test_strips_trailing_punctuation_and_unbalanced_parenthesis():
    text = "(see https://acme.com/pricing) and **https://example.com/a**!"

    assert extract_citations(text) == ["https://acme.com/pricing", "https://example.com/a"]


def test_keeps_balanced_parenthesis():
    text = "Read https://en.wikipedia.org/wiki/Acme_(company)."

    assert extract_citations(text) == ["https://en.wikipedia.org/wiki/Acme_(company)"]


def test_rejects_hosts_without_a_domain():
    assert extract_citations("Try http://intranet/page or https://localhost/x") == ["https://localhost/x"]


def test_appends_native_citations_after_text_urls():
    citations = extract_citations(
        "Per https://acme.com the product ships monthly.",
        extra=["https://news.example.com/acme", "https://acme.com", "not a url"],
    )

    assert citations == ["https://acme.com", "https://news.example.com/acme"]


def test_empty_text_has_no_citations():
    assert extract_citations("") == []
    assert extract_citations(None) == []


def test_find_domain_citation_matches_host_and_subdomains():
    urls = ["https://badacme.com/x", "https://blog.acme.com/post", "https://acme.com/"]

    assert find_domain_citation(urls, "acme.com") == "https://blog.acme.com/post"
    assert find_domain_citation(urls, "https://www.acme.com/") == "https://blog.acme.com/post"
    assert find_domain_citation(urls, None) is None
    assert find_domain_citation(["https://globex.com"], "acme.com") is None
