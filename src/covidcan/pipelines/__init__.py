"""
covidcan.pipelines — End-to-end pipeline orchestrators.

Each pipeline module exports a run() async function that accepts keyword
options and returns a PipelineResult.

    from covidcan.pipelines import case_forecast, province_trend, provincial_summary, variants

    result = await provincial_summary.run(metric="max_cases", top=5)
"""
