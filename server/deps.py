"""Request-scoped access to the application's components."""

from fastapi import Request

from orchestra.lifecycle.deployer import SystemDeployer
from orchestra.lifecycle.designer import SystemDesigner
from orchestra.persistence.base import ChatStore
from orchestra.runtime.runner import SystemRunner
from orchestra.uitools.registry import UIToolRegistry


def get_runner(request: Request) -> SystemRunner:
    return request.app.state.runner


def get_registry(request: Request) -> UIToolRegistry:
    return request.app.state.registry


def get_designer(request: Request) -> SystemDesigner:
    return request.app.state.designer


def get_deployer(request: Request) -> SystemDeployer:
    return request.app.state.deployer


def get_chat_store(request: Request) -> ChatStore:
    return request.app.state.chat_store
