import logging

from capo_net.scope import Scope


def test_defaults():
    scope = Scope()
    assert scope.project_id == ""
    assert scope.provider_client is None
    assert scope.logger is logging.getLogger("capo_net")


def test_values_are_kept():
    logger = logging.getLogger("custom")
    scope = Scope(project_id="proj", logger=logger)
    assert scope.project_id == "proj"
    assert scope.logger is logger