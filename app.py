# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db frigorifico.db
  python app.py params show
  python app.py lote importar romaneio.xlsx --fornecedor "Fazenda Boa Vista" --peso-romaneio 1500
  python app.py estoque listar
  python app.py rel recebiveis
"""

from frigorifico.adapters.cli import main

if __name__ == "__main__":
    main()
