from agents.personas import Persona
from services.articles import find_relevant_articles, format_citation


def test_keyword_and_persona_bonus_select_article():
    articles = find_relevant_articles("Que dit la Loi 25 sur nos usages ?", Persona.PROJECT)
    assert [article.slug for article in articles] == ["loi-25-ia"]


def test_single_keyword_without_persona_bonus_is_not_enough():
    assert find_relevant_articles("la loi 25 ?", Persona.TECHNICAL) == []


def test_best_scoring_article_first():
    question = "Quels risques si mes employés utilisent ChatGPT sans règles ?"
    articles = find_relevant_articles(question, Persona.STRATEGY, max_results=2)
    assert articles[0].slug == "shadow-ai-risques"


def test_citation_format():
    articles = find_relevant_articles("shadow ai et fuite de données", Persona.TECHNICAL)
    citation = format_citation(articles)
    assert citation.startswith("\n\n")
    assert "(/blog/shadow-ai-risques)" in citation
    assert format_citation([]) == ""
