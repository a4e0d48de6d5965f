from agents.personas import Persona
from agents.redirector import MidConversationRedirector


def test_no_switch_on_equal_scores():
    redirector = MidConversationRedirector()
    # "budget" for strategy, "api" for technical
    assert redirector.evaluate("budget et api", Persona.STRATEGY) is None
    assert redirector.evaluate("budget et api", Persona.TECHNICAL) is None


def test_switch_when_challenger_strictly_higher():
    redirector = MidConversationRedirector()
    assert redirector.evaluate("Comment installer le connecteur CRM ?", Persona.STRATEGY) == Persona.TECHNICAL


def test_no_switch_without_any_hit():
    assert MidConversationRedirector().evaluate("merci beaucoup", Persona.PROJECT) is None


def test_current_persona_keeps_conversation_when_leading():
    redirector = MidConversationRedirector()
    assert redirector.evaluate("planning et formation, puis le budget", Persona.PROJECT) is None


def test_routing_only_keywords_do_not_trigger_redirect():
    # "secteur" is a routing keyword but not a redirect keyword
    assert MidConversationRedirector().evaluate("et pour mon secteur ?", Persona.TECHNICAL) is None
