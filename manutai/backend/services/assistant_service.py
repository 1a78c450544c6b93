"""Service boundary for AI-generated inspection questions and report summaries.

Both operations degrade to deterministic Portuguese text when the model is
unavailable or answers with something unusable; neither raises to the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from openai import OpenAI

from config import get_settings
from models.checklist_model import ChecklistItem
from models.report_model import ChatMessage, MessageSender, SummaryResult

logger = logging.getLogger(__name__)

SUMMARY_FALLBACK_TEXT = "Não foi possível gerar o resumo via IA. Verifique o histórico completo."


def _has_real_openai_key() -> bool:
	"""Return whether a non-placeholder OpenAI key is configured."""
	key = get_settings().openai_api_key.strip()
	if not key or not key.startswith("sk-"):
		return False
	placeholder_markers = (
		"replace-with-valid-openai-key",
		"replace",
		"example",
	)
	return not any(marker in key.lower() for marker in placeholder_markers)


def sender_label(sender: MessageSender) -> str:
	"""Label used for a sender when a transcript is flattened into prompt text."""
	if sender is MessageSender.SYSTEM:
		return "SYSTEM"
	if sender is MessageSender.USER:
		return "USER"
	if sender is MessageSender.AI:
		return "AI"
	raise ValueError(f"Unknown message sender: {sender!r}")


def format_history(messages: Sequence[ChatMessage]) -> str:
	return "\n".join(f"{sender_label(message.sender)}: {message.text}" for message in messages)


def fallback_question(item: ChecklistItem) -> str:
	return f"Verifique o item: {item.text}. Digite a situação."


def empty_question(item: ChecklistItem) -> str:
	return f"Por favor, verifique o item: {item.text}. Está tudo OK?"


def fallback_summary(checklist_title: str, technician_name: str) -> SummaryResult:
	return SummaryResult(
		summary=SUMMARY_FALLBACK_TEXT,
		share_text=(
			"*Relatório de Manutenção*\n\n"
			f"Técnico: {technician_name}\n"
			f"Checklist: {checklist_title}\n\n"
			"Por favor, consulte o sistema para detalhes completos."
		),
		issues_found=False,
	)


def _question_system_prompt(checklist_title: str, item: ChecklistItem) -> str:
	return (
		"Você é um supervisor de manutenção experiente e educado.\n"
		f'Você está guiando um técnico através de um checklist de manutenção: "{checklist_title}".\n'
		f'O item atual que precisa ser verificado é: "{item.text}".\n\n'
		"Seu objetivo:\n"
		"1. Pergunte ao técnico sobre o status deste item específico.\n"
		"2. Seja conciso e direto, mas cordial.\n"
		"3. Se o histórico mostrar que o usuário relatou um problema no item anterior, "
		"reconheça brevemente antes de passar para o atual.\n"
		"4. Fale sempre em Português do Brasil."
	)


def _question_prompt(item: ChecklistItem, history: Sequence[ChatMessage]) -> str:
	return (
		"Histórico da conversa:\n"
		f"{format_history(history)}\n\n"
		f"Item atual do checklist: {item.text}\n\n"
		"Gere a próxima pergunta para o técnico verificar este item."
	)


def _summary_prompt(checklist_title: str, technician_name: str, history: Sequence[ChatMessage]) -> str:
	return (
		f'Analise a seguinte conversa de inspeção de manutenção para o checklist "{checklist_title}" '
		f"realizada por {technician_name}.\n\n"
		"Histórico:\n"
		f"{format_history(history)}\n\n"
		"Tarefas:\n"
		"1. Crie um resumo técnico profissional (max 100 palavras) destacando o que foi verificado "
		"e quaisquer problemas encontrados.\n"
		"2. Crie uma mensagem formatada para WhatsApp (use emojis, quebras de linha) pronta para enviar "
		"ao gestor. A mensagem de WhatsApp deve ser clara, listar itens críticos e problemas.\n"
		"3. Determine se houve algum problema/falha relatado (true/false).\n\n"
		"Retorne APENAS um JSON neste formato:\n"
		'{"summary": "texto do resumo...", "whatsappText": "texto formatado...", "issuesFound": boolean}'
	)


def parse_summary_response(text: str) -> SummaryResult:
	"""Parse the model's JSON answer into a ``SummaryResult``.

	Raises ``ValueError`` (JSON decode or pydantic validation errors) on
	malformed payloads so the caller can fall back.
	"""
	payload = json.loads(text)
	if not isinstance(payload, dict):
		raise ValueError("Summary response is not a JSON object.")
	return SummaryResult.model_validate(payload)


class InspectionAssistant:
	"""Generates per-item questions and the closing report summary.

	The client is created lazily from settings unless one is injected. With a
	placeholder API key and no injected client, every call returns fallback text.
	"""

	def __init__(self, client: Any | None = None, model: str | None = None) -> None:
		settings = get_settings()
		self._client = client
		self._model = model or settings.OPENAI_MODEL
		self._timeout = settings.OPENAI_TIMEOUT_SECONDS

	@property
	def uses_model(self) -> bool:
		"""Whether calls reach a model; otherwise every answer is fallback text."""
		return self._client is not None or _has_real_openai_key()

	def _get_client(self) -> Any | None:
		if self._client is None and _has_real_openai_key():
			self._client = OpenAI(api_key=get_settings().openai_api_key, timeout=self._timeout)
		return self._client

	def _complete(self, messages: list[dict[str, str]], **options: Any) -> str:
		client = self._get_client()
		if client is None:
			raise RuntimeError("OpenAI API key is not configured.")
		completion = client.chat.completions.create(model=self._model, messages=messages, **options)
		if not completion.choices:
			return ""
		return (completion.choices[0].message.content or "").strip()

	def next_question(
		self,
		checklist_title: str,
		current_item: ChecklistItem,
		history: Sequence[ChatMessage],
	) -> str:
		messages = [
			{"role": "system", "content": _question_system_prompt(checklist_title, current_item)},
			{"role": "user", "content": _question_prompt(current_item, history)},
		]
		try:
			text = self._complete(messages, temperature=0.4)
		except Exception as exc:
			logger.warning("question_generation_failed | item=%s | error=%s", current_item.id, exc)
			return fallback_question(current_item)
		return text or empty_question(current_item)

	def summarize(
		self,
		checklist_title: str,
		technician_name: str,
		history: Sequence[ChatMessage],
	) -> SummaryResult:
		messages = [{"role": "user", "content": _summary_prompt(checklist_title, technician_name, history)}]
		try:
			text = self._complete(messages, temperature=0.2, response_format={"type": "json_object"})
			if not text:
				raise ValueError("No response from AI")
			return parse_summary_response(text)
		except ValueError as exc:
			logger.warning("summary_response_invalid | checklist=%s | error=%s", checklist_title, exc)
		except Exception as exc:
			logger.warning("summary_generation_failed | checklist=%s | error=%s", checklist_title, exc)
		return fallback_summary(checklist_title, technician_name)
