"""Connectors — adapters de borda para webhooks de provedores.

Estrutura:
- webhook/: verificação de assinatura, handshake e entrada no pipeline
"""

__all__: list[str] = []
