"""API — camada de borda e adapters de provedores.

Responsabilidades:
- Receber webhooks de provedores externos
- Validar assinaturas e payloads
- Normalizar dados para modelos internos

Subpastas:
- connectors/: fronteira de webhook (assinatura, parsing, entrada no pipeline)
- normalizers/: conversão de payloads externos → NormalizedMessage

NÃO PODE conter: regras de dedupe, identidade, threading ou orquestração.
"""
