from metric_widget_cli.cli import main

main()
