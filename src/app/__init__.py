"""App — coração do sistema: pipeline de ingestão e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- use_cases/: pipeline de ingestão (orquestração dos estágios)
- services/: dedupe, idempotência, identidade e conversas
- domain/: regras puras (contatos, fingerprint, similaridade, thread key)
- infra/: implementações concretas de IO (stores, mídia)
- protocols/: contratos/interfaces e modelos
- observability/: correlation_id, métricas em log, mascaramento
- constants/: constantes da aplicação

Padrão: app executa; api adapta; utils apoia.
"""
