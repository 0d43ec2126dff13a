# frigorifico/config.py
"""
Configurações globais e valores padrão do núcleo de conciliação.
"""

import os
from dataclasses import dataclass


# Caminho padrão do banco de dados SQLite
DB_PATH = os.environ.get("FRIGORIFICO_DB", os.path.join(os.getcwd(), "frigorifico.db"))


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    epsilon: float = 0.01               # tolerância monetária (R$)
    desconto_carcaca_kg: float = 3.0    # perda fixa ao serrar a carcaça em bandas
    prazo_venda_dias: int = 30          # vencimento padrão das vendas
    prazo_compra_dias: int = 30         # vencimento padrão das compras a prazo
    tolerancia_peso: float = 0.05       # saída pode exceder a entrada em até 5%
    dias_bloqueio: int = 12             # peças com 12+ dias de câmara não saem
    volume_parceiro: float = 100000.0   # volume histórico para o tier AAA


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
