from ohlc_chart.cli import main

raise SystemExit(main())
