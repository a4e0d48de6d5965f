from agents.keyword_scorer import KeywordScorer, redirect_taxonomy, routing_taxonomy, score_keywords
from agents.personas import Persona


def test_counts_each_phrase_once():
    taxonomy = {Persona.STRATEGY: ["roi", "budget"], Persona.TECHNICAL: ["api"]}
    scores = score_keywords("ROI, roi et encore ROI pour le budget", taxonomy)
    assert scores[Persona.STRATEGY] == 2
    assert scores[Persona.TECHNICAL] == 0


def test_substring_match_without_word_boundary():
    scores = score_keywords("Nos rapides intégrations", {Persona.TECHNICAL: ["api"]})
    assert scores[Persona.TECHNICAL] == 1


def test_case_insensitive_multiword_phrase():
    scores = score_keywords("COMBIEN DE TEMPS faut-il ?", {Persona.PROJECT: ["combien de temps"]})
    assert scores[Persona.PROJECT] == 1


def test_empty_text_scores_zero_for_every_persona():
    scores = KeywordScorer().score("")
    assert set(scores) == {Persona.STRATEGY, Persona.TECHNICAL, Persona.PROJECT}
    assert all(value == 0 for value in scores.values())


def test_routing_example_hits_strategy_twice():
    scores = KeywordScorer(routing_taxonomy()).score("Quel est le ROI de l'IA pour mon secteur ?")
    assert scores[Persona.STRATEGY] == 2
    assert scores[Persona.TECHNICAL] == 0
    assert scores[Persona.PROJECT] == 0


def test_redirect_taxonomy_is_narrower():
    routing = routing_taxonomy()
    redirect = redirect_taxonomy()
    assert "secteur" in routing[Persona.STRATEGY]
    assert "secteur" not in redirect[Persona.STRATEGY]
