from backtest_console.app import main

main()
